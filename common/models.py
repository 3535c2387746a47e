from django.db import models
from django.utils.translation import gettext_lazy as _

from model_utils.fields import AutoCreatedField, AutoLastModifiedField


class IndexedTimeStampedModel(models.Model):
    created = AutoCreatedField(_("created"), db_index=True)
    modified = AutoLastModifiedField(_("modified"), db_index=True)

    class Meta:
        abstract = True


class MetaJsonFieldModel(models.Model):
    meta = models.JSONField(_("meta"), default=dict, blank=True)

    class Meta:
        abstract = True


class BaseModel(IndexedTimeStampedModel, MetaJsonFieldModel):
    class Meta(IndexedTimeStampedModel.Meta, MetaJsonFieldModel.Meta):
        abstract = True


class TimeRangeModel(BaseModel):
    """
    Abstract model for rows that occupy a half-open ``[start_time, end_time)`` interval.
    """

    start_time = models.DateTimeField(_("start time"), db_index=True)
    end_time = models.DateTimeField(_("end time"), db_index=True)

    class Meta(BaseModel.Meta):
        abstract = True

    def overlaps(self, start_time, end_time) -> bool:
        """
        Touching intervals (``self.end_time == start_time``) do not overlap.
        """
        return self.start_time < end_time and start_time < self.end_time
