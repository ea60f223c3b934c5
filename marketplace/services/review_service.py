"""
ReviewService - Product Reviews

Adds and lists product reviews and keeps the denormalized Product.rating and
Product.review_count in step with the active reviews.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from marketplace.models import OrderItem, Product, ProductReview

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


class ReviewService(BaseService):
    """
    Service for product reviews.

    One review per reviewer per product; rating is an integer 1..5.
    """

    @BaseService.log_performance
    def add_review(
        self, user, product_id: str, rating: int, title: str = "", comment: str = ""
    ) -> ServiceResult[ProductReview]:
        """
        Example:
            >>> result = review_service.add_review(user, product_id, 5, "Great", "Works as described")
        """
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_RATING, "Rating must be an integer between 1 and 5")
        if not 1 <= rating <= 5:
            return service_err(ErrorCodes.INVALID_RATING, "Rating must be an integer between 1 and 5")

        try:
            product = Product.objects.get(id=product_id, is_active=True)
        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        if ProductReview.objects.filter(product=product, reviewer=user).exists():
            return service_err(ErrorCodes.REVIEW_ALREADY_EXISTS, "You have already reviewed this product")

        try:
            with transaction.atomic():
                review = ProductReview.objects.create(
                    product=product,
                    reviewer=user,
                    rating=rating,
                    title=title,
                    comment=comment,
                    is_verified_purchase=OrderItem.objects.filter(
                        product=product, order__buyer=user, order__status="delivered"
                    ).exists(),
                )
                self.recalculate_product_rating(product)

            self.logger.info(f"Review added: product={product.id}, reviewer={user.id}, rating={rating}")
            return service_ok(review)

        except IntegrityError:
            return service_err(ErrorCodes.REVIEW_ALREADY_EXISTS, "You have already reviewed this product")
        except Exception as e:
            self.logger.error(f"Error adding review for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def list_reviews(self, product_id: str) -> ServiceResult[List[ProductReview]]:
        if not Product.objects.filter(id=product_id).exists():
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        reviews = ProductReview.objects.filter(product_id=product_id, is_active=True).select_related("reviewer")
        return service_ok(list(reviews))

    def rating_distribution(self, product_id: str) -> ServiceResult[Dict[int, int]]:
        """Review count per star, every star present."""
        rows = (
            ProductReview.objects.filter(product_id=product_id, is_active=True)
            .values("rating")
            .annotate(count=Count("id"))
        )
        counts = {row["rating"]: row["count"] for row in rows}
        return service_ok({star: counts.get(star, 0) for star in range(5, 0, -1)})

    def recalculate_product_rating(self, product: Product) -> Product:
        stats = ProductReview.objects.filter(product=product, is_active=True).aggregate(
            average=Avg("rating"), count=Count("id")
        )
        average = stats["average"] or 0
        product.rating = Decimal(str(average)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        product.review_count = stats["count"]
        product.save(update_fields=["rating", "review_count"])
        return product
