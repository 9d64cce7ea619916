"""Domain records and mocked data of the demo storefront."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    category: str
    image: str = ""


@dataclass
class CartItem:
    product: Product
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    demographics: str = "unknown"


@dataclass(frozen=True)
class Account:
    password: str
    name: str
    demographics: str


@dataclass(frozen=True)
class Order:
    id: str
    items: List[CartItem]
    total: float
    timestamp: datetime


MOCK_PRODUCTS: List[Product] = [
    Product("1", "iPhone 15", 999.99, "Electronics", "📱"),
    Product("2", "MacBook Pro", 1999.99, "Electronics", "💻"),
    Product("3", "Nike Shoes", 129.99, "Clothing", "👟"),
    Product("4", "Coffee Mug", 19.99, "Home", "☕"),
    Product("5", "Wireless Earbuds", 199.99, "Electronics", "🎧"),
    Product("6", "T-Shirt", 29.99, "Clothing", "👕"),
    Product("7", "Smart Watch", 299.99, "Electronics", "⌚"),
    Product("8", "Book: Flutter Guide", 39.99, "Books", "📚"),
]

DEMO_ACCOUNTS: Dict[str, Account] = {
    "test@test.com": Account("123456", "Test User", "age:25-34,region:BD"),
    "john@example.com": Account("password123", "John Doe", "age:35-44,region:US"),
    "sarah@example.com": Account("sarah2024", "Sarah Smith", "age:18-24,region:UK"),
    "admin@store.com": Account("admin123", "Admin User", "age:45-54,region:BD"),
}


def find_product(product_id: str) -> Product:
    for product in MOCK_PRODUCTS:
        if product.id == product_id:
            return product
    raise KeyError(f"Unknown product {product_id}")
