"""Mock product catalog"""

from typing import Optional

from ..models.product import Product

# Mock product catalog
PRODUCTS: list[Product] = [
    Product(
        id="prod-42",
        name="Ceramic Pour-Over Set",
        description="Dripper, carafe and two cups in matte stoneware.",
        price=50.00,
        category_id="cat-kitchen",
        stock=10,
    ),
    Product(
        id="prod-001",
        name="Wireless Noise-Cancelling Headphones",
        description="30-hour battery, multipoint pairing.",
        price=349.99,
        discounted_price=299.99,
        category_id="cat-audio",
        stock=50,
    ),
    Product(
        id="prod-002",
        name="Bluetooth Speaker",
        description="Waterproof portable speaker with 12-hour battery.",
        price=89.00,
        category_id="cat-audio",
        stock=100,
    ),
    Product(
        id="prod-003",
        name="Fleece Jacket",
        description="Recycled polyester fleece, regular fit.",
        price=139.00,
        category_id="cat-clothing",
        stock=75,
    ),
    Product(
        id="prod-004",
        name="Running Shoes",
        description="Lightweight trainers with foam midsole.",
        price=130.00,
        category_id="cat-clothing",
        stock=60,
    ),
    Product(
        id="prod-005",
        name="Stand Mixer",
        description="5.5-quart bowl-lift mixer with three attachments.",
        price=449.99,
        category_id="cat-kitchen",
        stock=3,
    ),
    Product(
        id="prod-006",
        name="Paperback Notebook",
        description="A5 dotted notebook, 192 pages.",
        price=12.50,
        category_id="cat-books",
        stock=200,
    ),
]


class ProductDatabase:
    """In-memory product database"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.products = {p.id: p.model_copy() for p in PRODUCTS}

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return self.products.get(product_id)

    def get_all_products(self) -> list[Product]:
        return list(self.products.values())

    def set_stock(self, product_id: str, stock: int) -> bool:
        product = self.products.get(product_id)
        if not product:
            return False
        product.stock = max(0, stock)
        return True

    def update_stock(self, product_id: str, quantity_change: int) -> bool:
        """
        Update product stock.

        Args:
            product_id: Product to update
            quantity_change: Positive to add, negative to remove

        Returns:
            True if successful
        """
        product = self.products.get(product_id)
        if not product:
            return False

        new_quantity = product.stock + quantity_change
        if new_quantity < 0:
            return False

        product.stock = new_quantity
        return True


# Singleton instance
product_db = ProductDatabase()
