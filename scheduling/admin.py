from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import (
    User,
    TutorProfile,
    TutoringClass,
    BookingLink,
    AvailabilityRule,
    Booking,
    RescheduleRequest,
)

# ----------------------------
# Users (show role)
# ----------------------------
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = (
        "username",
        "email",
        "role",
        "is_staff",
        "is_superuser",
        "date_joined",
        "last_login",
    )
    list_filter = ("role", "is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)
    fieldsets = DjangoUserAdmin.fieldsets + (("Scheduling", {"fields": ("role",)}),)
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (("Scheduling", {"fields": ("role",)}),)


# ----------------------------
# Tutors & classes
# ----------------------------
@admin.register(TutorProfile)
class TutorProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "buffer_minutes")
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)

@admin.register(TutoringClass)
class TutoringClassAdmin(admin.ModelAdmin):
    list_display = ("title", "tutor", "subject", "duration_minutes", "price_per_session", "is_active")
    list_filter = ("is_active", "subject")
    search_fields = ("title", "subject", "tutor__username", "tutor__email")
    autocomplete_fields = ("tutor",)

@admin.register(BookingLink)
class BookingLinkAdmin(admin.ModelAdmin):
    list_display = ("token", "tutoring_class", "tutor", "expires_at", "is_active")
    list_filter = ("is_active",)
    search_fields = ("token", "tutoring_class__title", "tutor__username")
    readonly_fields = ("token", "created_at")


# ----------------------------
# Weekly availability
# ----------------------------
@admin.register(AvailabilityRule)
class AvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ("tutor", "day_of_week", "start_time", "end_time", "timezone")
    list_filter = ("day_of_week", "tutor")
    search_fields = ("tutor__username", "tutor__email")
    ordering = ("tutor", "day_of_week", "start_time")
    autocomplete_fields = ("tutor",)


# ----------------------------
# Bookings & reschedules
# ----------------------------
class RescheduleRequestInline(admin.TabularInline):
    model = RescheduleRequest
    extra = 0
    fields = ("requested_by", "proposed_time", "status", "created_at", "resolved_at")
    readonly_fields = ("created_at", "resolved_at")

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("tutoring_class", "tutor", "student", "scheduled_at", "duration_minutes", "status")
    list_filter = ("status", "tutor")
    search_fields = (
        "tutoring_class__title",
        "tutor__username",
        "student__username",
        "student__email",
        "notes",
    )
    date_hierarchy = "scheduled_at"
    ordering = ("-scheduled_at",)
    autocomplete_fields = ("tutoring_class", "tutor", "student")
    inlines = [RescheduleRequestInline]

@admin.register(RescheduleRequest)
class RescheduleRequestAdmin(admin.ModelAdmin):
    list_display = ("booking", "requested_by", "proposed_time", "status", "created_at", "resolved_at")
    list_filter = ("status",)
    search_fields = ("booking__tutoring_class__title", "requested_by__username")
    date_hierarchy = "created_at"
