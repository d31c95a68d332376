"""Unit tests for TimestampedModel and SoftDeleteModel.

Concrete models are created through the schema editor so the abstract
classes run against a real table.
"""

from __future__ import annotations

import uuid

import pytest
from django.db import connection, models
from django.utils import timezone
from freezegun import freeze_time

from modules.core.models import (
    SoftDeleteManager,
    SoftDeleteModel,
    SoftDeleteQuerySet,
    TimestampedModel,
)

pytestmark = pytest.mark.unit


class SampleRecord(TimestampedModel):
    name = models.CharField(max_length=100)

    class Meta(TimestampedModel.Meta):
        app_label = "core"
        db_table = "test_sample_record"


class SampleArchivable(SoftDeleteModel):
    title = models.CharField(max_length=100)

    class Meta(SoftDeleteModel.Meta):
        app_label = "core"
        db_table = "test_sample_archivable"


@pytest.fixture(scope="session")
def _sample_tables(django_db_setup, django_db_blocker):
    with django_db_blocker.unblock():
        existing = connection.introspection.table_names()
        with connection.schema_editor() as editor:
            for model in (SampleRecord, SampleArchivable):
                if model._meta.db_table not in existing:
                    editor.create_model(model)


@pytest.fixture(autouse=True)
def _use_sample_tables(_sample_tables):
    pass


class TestTimestampedModel:
    def test_primary_key_is_uuid7(self):
        record = SampleRecord.objects.create(name="corte")
        assert isinstance(record.id, uuid.UUID)
        assert record.id.version == 7

    def test_primary_key_is_time_ordered(self):
        first = SampleRecord.objects.create(name="first")
        second = SampleRecord.objects.create(name="second")
        assert str(first.id) < str(second.id)

    def test_timestamps_set_on_create(self):
        record = SampleRecord.objects.create(name="corte")
        assert record.created_at is not None
        assert record.updated_at is not None

    def test_update_fields_refreshes_updated_at(self):
        with freeze_time("2026-03-01 10:00:00"):
            record = SampleRecord.objects.create(name="original")
        with freeze_time("2026-03-02 10:00:00"):
            record.name = "changed"
            record.save(update_fields=["name"])
        record.refresh_from_db()
        assert record.updated_at.date().isoformat() == "2026-03-02"
        assert record.created_at.date().isoformat() == "2026-03-01"

    def test_id_is_not_editable(self):
        assert SampleRecord._meta.get_field("id").editable is False


class TestSoftDeleteModel:
    def test_new_instance_is_alive(self):
        item = SampleArchivable.objects.create(title="alive")
        assert item.is_deleted is False

    @freeze_time("2026-06-15 12:00:00")
    def test_delete_stamps_deleted_at(self):
        item = SampleArchivable.objects.create(title="gone")
        result = item.delete()
        item.refresh_from_db()
        assert item.deleted_at == timezone.now()
        assert result == (1, {"core.SampleArchivable": 1})

    def test_second_delete_is_noop(self):
        item = SampleArchivable.objects.create(title="twice")
        item.delete()
        assert item.delete() == (0, {})

    def test_deleted_rows_stay_in_objects_but_leave_alive(self):
        item = SampleArchivable.objects.create(title="hidden")
        item.delete()
        assert SampleArchivable.objects.filter(pk=item.pk).exists()
        assert not SampleArchivable.objects.alive().filter(pk=item.pk).exists()

    def test_bulk_delete_skips_already_deleted(self):
        a = SampleArchivable.objects.create(title="a")
        b = SampleArchivable.objects.create(title="b")
        a.delete()
        count, _ = SampleArchivable.objects.filter(pk__in=[a.pk, b.pk]).delete()
        assert count == 1
        b.refresh_from_db()
        assert b.is_deleted is True

    def test_manager_and_queryset_types(self):
        assert isinstance(SampleArchivable.objects, SoftDeleteManager)
        assert isinstance(SampleArchivable.objects.all(), SoftDeleteQuerySet)
