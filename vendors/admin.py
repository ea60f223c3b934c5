from django.contrib import admin

from .models import CommissionRule, Vendor, VendorCommission, VendorPayout


class CommissionRuleInline(admin.TabularInline):
    model = CommissionRule
    extra = 0
    fields = ('product_category', 'commission_type', 'commission_rate', 'effective_date', 'expiry_date', 'is_active')


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ('business_name', 'user', 'business_type', 'status', 'verification_status',
                    'performance_tier', 'commission_rate', 'created_at')
    list_filter = ('status', 'verification_status', 'business_type', 'performance_tier', 'created_at')
    search_fields = ('business_name', 'contact_email', 'user__email')
    readonly_fields = ('id', 'approved_at', 'created_at', 'updated_at')
    inlines = [CommissionRuleInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'user', 'business_name', 'business_type', 'description')
        }),
        ('Contact', {
            'fields': ('contact_email', 'contact_phone', 'website', 'business_address', 'business_categories')
        }),
        ('Payout Details', {
            'fields': ('tax_id', 'bank_account_holder', 'bank_name', 'bank_account_number'),
            'classes': ('collapse',)
        }),
        ('Review', {
            'fields': ('status', 'verification_status', 'performance_tier', 'commission_rate',
                       'admin_notes', 'approved_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


@admin.register(CommissionRule)
class CommissionRuleAdmin(admin.ModelAdmin):
    list_display = ('id', 'vendor', 'product_category', 'commission_type', 'commission_rate',
                    'effective_date', 'expiry_date', 'is_active')
    list_filter = ('commission_type', 'is_active')
    search_fields = ('vendor__business_name', 'product_category')
    list_editable = ('is_active',)


@admin.register(VendorCommission)
class VendorCommissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'vendor', 'order', 'base_amount', 'commission_amount', 'net_payout',
                    'status', 'payout', 'created_at')
    list_filter = ('status', 'commission_type', 'created_at')
    search_fields = ('vendor__business_name', 'order__order_number')
    readonly_fields = ('order', 'order_item', 'product', 'applied_rules', 'created_at', 'updated_at')
    date_hierarchy = 'created_at'


class VendorCommissionInline(admin.TabularInline):
    model = VendorCommission
    fk_name = 'payout'
    extra = 0
    can_delete = False
    fields = ('order', 'base_amount', 'commission_amount', 'net_payout', 'status')
    readonly_fields = fields


@admin.register(VendorPayout)
class VendorPayoutAdmin(admin.ModelAdmin):
    list_display = ('id', 'vendor', 'payout_period_start', 'payout_period_end', 'net_payout',
                    'orders_count', 'status', 'processed_at')
    list_filter = ('status', 'payment_method', 'created_at')
    search_fields = ('vendor__business_name', 'payment_reference')
    readonly_fields = ('id', 'total_sales', 'total_commission', 'total_fees', 'net_payout',
                       'orders_count', 'processed_at', 'created_at', 'updated_at')
    inlines = [VendorCommissionInline]
