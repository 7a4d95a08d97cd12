from django import forms
from django.contrib import admin, messages
from django.utils.html import format_html

from .availability import Weekday
from .models import Booking, BookingStatus, Spot
from .services import BookingError, cancel_booking, complete_booking


admin.site.site_header = "Parking Marketplace Admin"
admin.site.site_title = "Parking Marketplace Admin"
admin.site.index_title = "Spots & Bookings"


STATUS_COLORS = {
    BookingStatus.PENDING: "#c9b26b",
    BookingStatus.CONFIRMED: "#3c8d5a",
    BookingStatus.COMPLETED: "#7e8571",
    BookingStatus.CANCELLED: "#b0493f",
}


class SpotAdminForm(forms.ModelForm):
    days = forms.MultipleChoiceField(
        choices=Weekday.choices,
        required=False,
        widget=forms.CheckboxSelectMultiple,
    )

    class Meta:
        model = Spot
        fields = "__all__"


@admin.register(Spot)
class SpotAdmin(admin.ModelAdmin):
    form = SpotAdminForm
    list_display = ("address", "city", "spot_type", "owner", "price", "schedule", "validity", "is_active")
    list_filter = ("is_active", "spot_type", "city")
    search_fields = ("address", "city", "owner__email", "owner__username")
    autocomplete_fields = ("owner",)
    list_select_related = ("owner",)
    actions = ["deactivate_spots"]

    @admin.display(description="Schedule")
    def schedule(self, obj: Spot) -> str:
        days = "Every day" if obj.every_day else ", ".join(obj.days or []) or "—"
        return f"{days} · {obj.hours_display}"

    @admin.display(description="Valid")
    def validity(self, obj: Spot) -> str:
        return f"{obj.valid_from} → {obj.valid_until}"

    @admin.action(description="Deactivate selected spots")
    def deactivate_spots(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} spot(s) deactivated.", messages.SUCCESS)

    def has_delete_permission(self, request, obj=None):
        # Spots are soft-deleted through is_active.
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "renter_email", "spot", "date", "time_range", "duration", "total_price", "status_badge")
    list_filter = ("status", "date")
    search_fields = ("renter__email", "renter__username", "spot__address")
    ordering = ("-date", "start_hour")
    list_select_related = ("renter", "spot")
    readonly_fields = (
        "spot",
        "renter",
        "date",
        "start_hour",
        "end_hour",
        "duration",
        "total_price",
        "status",
        "created_at",
        "updated_at",
        "cancelled_at",
    )
    actions = ["cancel_bookings", "mark_completed"]

    @admin.display(description="Renter", ordering="renter__email")
    def renter_email(self, obj: Booking) -> str:
        return obj.renter.email or obj.renter.username

    @admin.display(description="Hours", ordering="start_hour")
    def time_range(self, obj: Booking) -> str:
        return obj.time_range

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj: Booking) -> str:
        return format_html(
            '<span style="padding:3px 8px;border-radius:999px;'
            "color: {};"
            'font-weight: 600; font-size: 11px; letter-spacing: 0.3px;">{}</span>',
            STATUS_COLORS.get(obj.status, "#7e8571"),
            obj.get_status_display(),
        )

    def has_add_permission(self, request):
        # Bookings only come from create_booking so the hour index stays in step.
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    @admin.action(description="Cancel selected bookings")
    def cancel_bookings(self, request, queryset):
        self._run_transition(
            request,
            queryset,
            lambda booking: cancel_booking(user=booking.spot.owner, booking_id=booking.id),
        )

    @admin.action(description="Mark selected bookings as completed")
    def mark_completed(self, request, queryset):
        self._run_transition(request, queryset, lambda booking: complete_booking(booking_id=booking.id))

    def _run_transition(self, request, queryset, transition):
        done = 0
        for booking in queryset.select_related("spot__owner"):
            try:
                transition(booking)
            except BookingError as exc:
                self.message_user(request, f"Booking {booking.id}: {exc.reason}", messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"{done} booking(s) updated.", messages.SUCCESS)
