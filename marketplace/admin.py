from django.contrib import admin

from .models import (
    Cart, CartItem, Category, Coupon, CouponUsage, Order, OrderItem,
    Product, ProductReview
)


class ProductReviewInline(admin.TabularInline):
    model = ProductReview
    extra = 0
    fields = ('reviewer', 'rating', 'title', 'is_active')
    readonly_fields = ('reviewer', 'rating', 'title', 'created_at')


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'parent', 'is_active', 'product_count', 'created_at')
    list_filter = ('is_active', 'parent', 'created_at')
    search_fields = ('name', 'description')
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ('created_at', 'product_count')

    fieldsets = (
        (None, {
            'fields': ('name', 'slug', 'description', 'parent')
        }),
        ('Status', {
            'fields': ('is_active',)
        }),
        ('Timestamps', {
            'fields': ('created_at',),
            'classes': ('collapse',)
        })
    )

    def product_count(self, obj):
        return obj.products.filter(is_active=True).count()
    product_count.short_description = 'Active products'


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'vendor', 'category', 'price', 'stock_quantity',
                    'rating', 'is_active', 'is_featured', 'created_at')
    list_filter = ('is_active', 'is_featured', 'category', 'created_at')
    search_fields = ('name', 'description', 'sku', 'brand', 'vendor__business_name')
    readonly_fields = ('id', 'slug', 'rating', 'review_count', 'view_count', 'created_at', 'updated_at')
    list_editable = ('is_active', 'is_featured')
    inlines = [ProductReviewInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'name', 'slug', 'description', 'sku', 'vendor', 'category', 'brand')
        }),
        ('Pricing & Inventory', {
            'fields': ('price', 'compare_at_price', 'stock_quantity')
        }),
        ('Media', {
            'fields': ('images', 'tags')
        }),
        ('Status', {
            'fields': ('is_active', 'is_featured')
        }),
        ('Metrics', {
            'fields': ('rating', 'review_count', 'view_count'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


@admin.register(ProductReview)
class ProductReviewAdmin(admin.ModelAdmin):
    list_display = ('product', 'reviewer', 'rating', 'is_verified_purchase', 'is_active', 'created_at')
    list_filter = ('rating', 'is_verified_purchase', 'is_active', 'created_at')
    search_fields = ('product__name', 'reviewer__email', 'title', 'comment')
    readonly_fields = ('created_at', 'updated_at')


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ('added_at',)


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ('user', 'coupon_code', 'created_at', 'updated_at')
    search_fields = ('user__email',)
    inlines = [CartItemInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'vendor', 'product_name', 'product_sku', 'quantity',
                       'unit_price', 'total_price')
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'buyer', 'status', 'payment_status', 'total_amount', 'created_at')
    list_filter = ('status', 'payment_status', 'created_at')
    search_fields = ('order_number', 'buyer__email', 'tracking_number')
    readonly_fields = ('id', 'order_number', 'subtotal', 'shipping_cost', 'tax_amount',
                       'discount_amount', 'total_amount', 'coupon_code', 'created_at', 'updated_at',
                       'shipped_at', 'delivered_at', 'cancelled_at')
    inlines = [OrderItemInline]

    fieldsets = (
        ('Order', {
            'fields': ('id', 'order_number', 'buyer', 'status', 'payment_status', 'payment_method')
        }),
        ('Amounts', {
            'fields': ('currency', 'subtotal', 'shipping_cost', 'tax_amount', 'discount_amount',
                       'total_amount', 'coupon_code')
        }),
        ('Shipping', {
            'fields': ('shipping_address', 'billing_address', 'tracking_number', 'shipping_carrier')
        }),
        ('Notes', {
            'fields': ('notes', 'admin_notes', 'cancellation_reason')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'shipped_at', 'delivered_at', 'cancelled_at'),
            'classes': ('collapse',)
        })
    )


class CouponUsageInline(admin.TabularInline):
    model = CouponUsage
    extra = 0
    readonly_fields = ('user', 'order', 'discount_amount', 'used_at')
    can_delete = False


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ('code', 'type', 'value', 'usage_count', 'usage_limit', 'valid_from', 'valid_to', 'is_active')
    list_filter = ('type', 'is_active', 'valid_to')
    search_fields = ('code', 'description')
    readonly_fields = ('usage_count', 'created_at', 'updated_at')
    inlines = [CouponUsageInline]
