# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel, ProductWeightModel

# dev catalog: name -> [(weight, price, stock, measurement)]
DEMO_CATALOG = {
    "Mysore Pak": [("250", "50.00", 100, "g"), ("500", "95.00", 40, "g")],
    "Kaju Katli": [("250", "120.00", 60, "g"), ("1", "450.00", 10, "kg")],
    "Murukku": [("200", "30.00", 200, "g")],
}


def seed_catalog(db, catalog: dict = DEMO_CATALOG) -> list[ProductModel]:
    products = []
    for name, weights in catalog.items():
        product = ProductModel(
            name=name,
            weights=[
                ProductWeightModel(
                    weight=weight,
                    price=Decimal(price),
                    stock=stock,
                    measurement=measurement,
                )
                for weight, price, stock, measurement in weights
            ],
        )
        db.add(product)
        products.append(product)
    db.commit()
    return products


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return
        seed_catalog(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
