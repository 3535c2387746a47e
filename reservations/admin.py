from django.contrib import admin

from reservations.models import RecurringSeries, Reservation


class ReservationInline(admin.TabularInline):
    model = Reservation
    fields = ("occurrence_date", "start_time", "end_time", "status")
    readonly_fields = fields
    extra = 0
    can_delete = False


@admin.register(RecurringSeries)
class RecurringSeriesAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "room", "requester", "rule", "start_time", "end_time", "created")
    list_filter = ("room",)
    search_fields = ("name", "requester__email")
    raw_id_fields = ("requester",)
    inlines = (ReservationInline,)


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "room", "requester", "start_time", "end_time", "status", "series")
    list_filter = ("status", "room")
    search_fields = ("name", "requester__email")
    raw_id_fields = ("requester", "series")
    date_hierarchy = "start_time"
