import uuid
from decimal import Decimal

import pytest

from marketplace.services.base import ErrorCodes
from marketplace.services.review_service import ReviewService
from marketplace.tests.factories import (
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProductReviewFactory,
    UserFactory,
)


@pytest.mark.unit
@pytest.mark.django_db
class TestReviewService:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = ReviewService()
        self.user = UserFactory()
        self.product = ProductFactory()

    def test_add_review_updates_product_rating(self):
        ProductReviewFactory(product=self.product, rating=2)
        self.service.recalculate_product_rating(self.product)

        result = self.service.add_review(self.user, str(self.product.id), 5, "Great", "Works")

        assert result.ok
        self.product.refresh_from_db()
        assert self.product.review_count == 2
        assert self.product.rating == Decimal("3.50")

    def test_verified_purchase_needs_delivered_order(self):
        OrderItemFactory(order=OrderFactory(buyer=self.user, status="delivered"), product=self.product)
        assert self.service.add_review(self.user, str(self.product.id), 4).value.is_verified_purchase is True

        other = UserFactory()
        OrderItemFactory(order=OrderFactory(buyer=other, status="shipped"), product=self.product)
        assert self.service.add_review(other, str(self.product.id), 4).value.is_verified_purchase is False

    @pytest.mark.parametrize("rating", [0, 6, "five", None])
    def test_invalid_rating(self, rating):
        assert self.service.add_review(self.user, str(self.product.id), rating).error == ErrorCodes.INVALID_RATING

    def test_one_review_per_user(self):
        self.service.add_review(self.user, str(self.product.id), 4)
        assert self.service.add_review(self.user, str(self.product.id), 5).error == ErrorCodes.REVIEW_ALREADY_EXISTS

    def test_unknown_or_inactive_product(self):
        hidden = ProductFactory(is_active=False)
        assert self.service.add_review(self.user, str(hidden.id), 3).error == ErrorCodes.PRODUCT_NOT_FOUND
        assert self.service.list_reviews(str(uuid.uuid4())).error == ErrorCodes.PRODUCT_NOT_FOUND

    def test_list_reviews_skips_hidden(self):
        visible = ProductReviewFactory(product=self.product)
        ProductReviewFactory(product=self.product, is_active=False)

        assert [review.id for review in self.service.list_reviews(str(self.product.id)).value] == [visible.id]

    def test_rating_distribution(self):
        for rating in (5, 5, 3):
            ProductReviewFactory(product=self.product, rating=rating)

        assert self.service.rating_distribution(str(self.product.id)).value == {5: 2, 4: 0, 3: 1, 2: 0, 1: 0}
