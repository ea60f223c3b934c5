import random
import uuid
from datetime import timedelta
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from django.utils.text import slugify
from faker import Faker

from marketplace.models import (
    Cart,
    CartItem,
    Category,
    Coupon,
    Order,
    OrderItem,
    Product,
    ProductReview,
)

User = get_user_model()
fake = Faker()


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User

    id = factory.LazyFunction(uuid.uuid4)
    username = factory.Sequence(lambda n: f"user_{n}")
    email = factory.Sequence(lambda n: f"user_{n}@example.com")
    password = factory.django.Password("defaultpassword")
    is_active = True
    role = "user"


class VendorUserFactory(UserFactory):
    role = "vendor"
    username = factory.Sequence(lambda n: f"vendor_{n}")
    email = factory.Sequence(lambda n: f"vendor_{n}@example.com")


class AdminFactory(UserFactory):
    role = "admin"
    is_superuser = True
    is_staff = True
    username = factory.Sequence(lambda n: f"admin_{n}")
    email = factory.Sequence(lambda n: f"admin_{n}@example.com")


class CategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Category

    name = factory.Sequence(lambda n: f"Category {n}")
    slug = factory.LazyAttribute(lambda o: slugify(o.name))
    description = factory.Faker("text", max_nb_chars=200)
    is_active = True


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Product {n}")
    description = factory.Faker("paragraph", nb_sentences=5)
    sku = factory.Sequence(lambda n: f"SKU-{n:05d}")
    price = factory.LazyFunction(lambda: Decimal(f"{random.randint(10, 500)}.00"))
    stock_quantity = 20
    brand = factory.Faker("company")
    images = factory.LazyFunction(lambda: [fake.image_url()])
    tags = factory.LazyFunction(list)
    is_active = True
    is_featured = False

    vendor = factory.SubFactory("vendors.tests.factories.VendorFactory")
    category = factory.SubFactory(CategoryFactory)


class ProductOnSaleFactory(ProductFactory):
    compare_at_price = factory.LazyAttribute(lambda o: o.price + Decimal(f"{random.randint(10, 50)}.00"))


class ProductOutOfStockFactory(ProductFactory):
    stock_quantity = 0


class ProductReviewFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ProductReview

    product = factory.SubFactory(ProductFactory)
    reviewer = factory.SubFactory(UserFactory)
    rating = factory.Faker("random_int", min=1, max=5)
    title = factory.Faker("sentence", nb_words=5)
    comment = factory.Faker("paragraph", nb_sentences=2)
    is_verified_purchase = True
    is_active = True


class CartFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Cart

    user = factory.SubFactory(UserFactory)


class CartItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CartItem

    cart = factory.SubFactory(CartFactory)
    product = factory.SubFactory(ProductFactory)
    quantity = factory.Faker("random_int", min=1, max=5)


class CouponFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Coupon

    code = factory.Sequence(lambda n: f"SAVE{n}")
    type = "percentage"
    value = Decimal("10.00")
    description = factory.Faker("sentence", nb_words=4)
    valid_from = factory.LazyFunction(lambda: timezone.now() - timedelta(days=1))
    valid_to = factory.LazyFunction(lambda: timezone.now() + timedelta(days=30))
    is_active = True


class OrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Order

    order_number = factory.Sequence(lambda n: f"ORD-TEST-{n:06d}")
    buyer = factory.SubFactory(UserFactory)
    status = "confirmed"
    payment_status = "paid"
    subtotal = factory.LazyFunction(lambda: Decimal(f"{random.randint(50, 500)}.00"))
    shipping_cost = Decimal("0.00")
    tax_amount = Decimal("0.00")
    discount_amount = Decimal("0.00")
    total_amount = factory.LazyAttribute(lambda o: o.subtotal + o.shipping_cost + o.tax_amount - o.discount_amount)
    shipping_address = factory.LazyAttribute(
        lambda o: {
            "street": fake.street_address(),
            "city": fake.city(),
            "country": fake.country(),
            "postal_code": fake.postcode(),
        }
    )


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product = factory.SubFactory(ProductFactory)
    vendor = factory.LazyAttribute(lambda o: o.product.vendor)
    quantity = factory.Faker("random_int", min=1, max=3)

    @factory.lazy_attribute
    def unit_price(self):
        return self.product.price

    @factory.lazy_attribute
    def total_price(self):
        return self.unit_price * self.quantity

    product_name = factory.LazyAttribute(lambda o: o.product.name)
    product_sku = factory.LazyAttribute(lambda o: o.product.sku)
    category_name = factory.LazyAttribute(lambda o: o.product.category.name if o.product.category else "")
