from django.contrib import admin

from rooms.models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "capacity", "is_active", "created")
    list_filter = ("is_active",)
    search_fields = ("name",)
