from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import BaseModel, TimeRangeModel
from reservations.constants import SERIES_NAME_MAX_LENGTH, ReservationStatus
from reservations.managers import ReservationManager


if TYPE_CHECKING:
    from django_stubs_ext.db.models.manager import RelatedManager


class RecurringSeries(BaseModel):
    """
    A recurring booking: one room, one daily time window and a recurrence rule.
    Each occurrence of the rule is stored as a ``Reservation`` pointing back to the series.
    """

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="recurring_series",
    )
    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.PROTECT,
        related_name="recurring_series",
    )
    name = models.CharField(_("name"), max_length=SERIES_NAME_MAX_LENGTH)
    rule = models.CharField(
        _("rule"), max_length=255, help_text="Canonical recurrence rule, e.g. FREQ=WEEKLY;BYDAY=MO;COUNT=4"
    )
    start_time = models.TimeField(_("start time"))
    end_time = models.TimeField(_("end time"))
    show = models.BooleanField(default=True)
    ext = models.TextField(blank=True, null=True)

    reservations: "RelatedManager[Reservation]"

    class Meta(BaseModel.Meta):
        verbose_name_plural = "recurring series"

    def __str__(self):
        return f"{self.name} ({self.rule})"


class Reservation(TimeRangeModel):
    """
    A single booking of a room. Reservations created from a recurring series
    keep a reference to it along with the date of the occurrence they represent.
    """

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    name = models.CharField(_("name"), max_length=255)
    status = models.CharField(
        _("status"),
        max_length=16,
        choices=ReservationStatus.choices,
        default=ReservationStatus.ACTIVE,
    )
    show = models.BooleanField(default=True)
    ext = models.TextField(blank=True, null=True)

    series = models.ForeignKey(
        RecurringSeries,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="reservations",
    )
    occurrence_date = models.DateField(_("occurrence date"), null=True, blank=True)

    objects: ReservationManager = ReservationManager()

    class Meta(TimeRangeModel.Meta):
        constraints = [
            models.UniqueConstraint(
                fields=["series", "occurrence_date"],
                condition=models.Q(series__isnull=False),
                name="unique_reservation_per_series_occurrence",
            ),
            models.CheckConstraint(
                condition=models.Q(start_time__lt=models.F("end_time")),
                name="reservation_start_before_end",
            ),
        ]
        indexes = [
            models.Index(
                fields=["room", "status", "start_time", "end_time"],
                name="reservation_room_window_idx",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.start_time} - {self.end_time})"

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE
