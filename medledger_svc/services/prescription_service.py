"""
Service layer for dictated prescriptions.

Hospitals create a prescription from a dictation transcript; the patient's
app lists them by identifier and moves them through new -> viewed ->
completed. The same records feed the frequency analytics strategy.

Architecture:
    API Layer (routers/prescriptions.py) → PrescriptionService → InMemoryPrescriptionStore

Dependency Injection:
    PrescriptionService receives its store via constructor injection.
    Use core.dependencies.get_prescription_service() in routers with Depends().
"""
import logging
import time
from typing import Callable, List, Optional

from core.exceptions import PrescriptionNotFoundError
from core.logging_config import mask_identifier
from services.analytics.models import HealthMetric
from stores.prescription_store import (
    InMemoryPrescriptionStore,
    PrescriptionRecord,
    PrescriptionStatus,
    new_prescription_id,
)

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "General Medicine"
PRESCRIPTION_METRIC_TYPE = "prescription"


class PrescriptionService:
    """
    Service layer for prescription operations.

    Transcripts and audio are never logged; identifiers are masked.
    """

    def __init__(self, store: InMemoryPrescriptionStore, clock: Callable[[], float] = time.time):
        """
        Args:
            store: Backing store. Injected via core.dependencies.get_prescription_service().
            clock: Returns the current time in epoch seconds; dates default to it.
        """
        self._store = store
        self._clock = clock

    def create_prescription(
        self,
        patient_identifier: str,
        patient_name: str,
        doctor_name: str,
        transcription: str,
        department: Optional[str] = None,
        issued_at: Optional[int] = None,
        patient_id: Optional[str] = None,
        audio_data: Optional[str] = None,
    ) -> PrescriptionRecord:
        """Store a new prescription with status ``new``."""
        record = PrescriptionRecord(
            id=new_prescription_id(),
            patient_identifier=patient_identifier,
            patient_name=patient_name,
            doctor_name=doctor_name,
            department=department or DEFAULT_DEPARTMENT,
            transcription=transcription,
            issued_at=int(self._clock()) if issued_at is None else issued_at,
            patient_id=patient_id,
            audio_data=audio_data,
        )
        self._store.add(record)
        logger.info(
            "Prescription created",
            extra={
                "prescription_id": record.id,
                "identifier": mask_identifier(patient_identifier),
                "has_audio": audio_data is not None,
            },
        )
        return record

    def list_prescriptions(self, patient_identifier: Optional[str] = None) -> List[PrescriptionRecord]:
        return self._store.list(patient_identifier)

    def update_status(self, prescription_id: str, status: PrescriptionStatus) -> PrescriptionRecord:
        """
        Raises:
            PrescriptionNotFoundError: If no prescription has this id.
        """
        updated = self._store.update_status(prescription_id, PrescriptionStatus(status))
        if updated is None:
            raise PrescriptionNotFoundError(prescription_id)
        logger.info("Prescription status updated", extra={"prescription_id": prescription_id, "status": updated.status.value})
        return updated

    def as_metrics(self, patient_identifier: Optional[str] = None) -> List[HealthMetric]:
        """
        Prescriptions as frequency-analytics records.

        The transcript becomes the notes, so a "Diagnosis: <name>, ..." prefix
        groups prescriptions by diagnosis.
        """
        return [
            HealthMetric.create(
                type=PRESCRIPTION_METRIC_TYPE,
                value=1,
                timestamp=record.issued_at,
                notes=record.transcription,
                hospital=record.department,
            )
            for record in self.list_prescriptions(patient_identifier)
        ]
