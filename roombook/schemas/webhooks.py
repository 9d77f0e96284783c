# roombook/schemas/webhooks.py
"""
Record-store webhook shapes.

A notification names the base and webhook; the change payloads are either
embedded (``payloads``) or fetched from the record store's payload queue.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Ref(BaseModel):
    id: str


class RecordValues(BaseModel):
    cell_values_by_field_id: dict[str, Any] = Field(default_factory=dict, alias="cellValuesByFieldId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RecordChange(BaseModel):
    current: Optional[RecordValues] = None
    previous: Optional[RecordValues] = None

    model_config = ConfigDict(extra="ignore")


class TableChanges(BaseModel):
    changed_records_by_id: dict[str, RecordChange] = Field(default_factory=dict, alias="changedRecordsById")
    destroyed_record_ids: list[str] = Field(default_factory=list, alias="destroyedRecordIds")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WebhookPayload(BaseModel):
    timestamp: Optional[str] = None
    changed_tables_by_id: dict[str, TableChanges] = Field(default_factory=dict, alias="changedTablesById")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WebhookNotification(BaseModel):
    base: _Ref
    webhook: _Ref
    timestamp: Optional[str] = None
    payloads: Optional[list[WebhookPayload]] = None

    model_config = ConfigDict(extra="ignore")


class WebhookAck(BaseModel):
    success: bool = True
    message: str
    payloads_total: int = Field(0, serialization_alias="payloadsTotal")
    payloads_processed: int = Field(0, serialization_alias="payloadsProcessed")
    payloads_superseded: int = Field(0, serialization_alias="payloadsSuperseded")
    tables_affected: int = Field(0, serialization_alias="tablesAffected")
    keys_invalidated: int = Field(0, serialization_alias="keysInvalidated")
    latest_payload_timestamp: Optional[str] = Field(None, serialization_alias="latestPayloadTimestamp")
