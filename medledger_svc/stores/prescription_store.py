"""
In-process store for dictated (voice) prescriptions.

Hospitals create prescriptions from a transcribed dictation; patients list
theirs by identifier and mark them viewed or completed. Records live for the
life of the process, newest first.

IMPORTANT: Store instantiation should be done through the DI layer.
Use core.dependencies.get_prescription_store() instead of instantiating directly.
"""
import logging
import threading
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class PrescriptionStatus(str, Enum):
    NEW = "new"
    VIEWED = "viewed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PrescriptionRecord:
    """
    One dictated prescription.

    Attributes:
        id: Store-assigned id, "VP" followed by 10 hex digits
        patient_identifier: 12-digit national identifier of the patient
        issued_at: Prescription date in epoch seconds
        audio_data: Base64 dictation audio, if the client kept it
    """
    id: str
    patient_identifier: str
    patient_name: str
    doctor_name: str
    department: str
    transcription: str
    issued_at: int
    patient_id: Optional[str] = None
    audio_data: Optional[str] = None
    status: PrescriptionStatus = PrescriptionStatus.NEW


def new_prescription_id() -> str:
    return f"VP{uuid.uuid4().hex[:10].upper()}"


class InMemoryPrescriptionStore:
    """List-backed prescription store guarded by a lock."""

    def __init__(self):
        self._records: List[PrescriptionRecord] = []
        self._lock = threading.Lock()

    def add(self, record: PrescriptionRecord) -> PrescriptionRecord:
        with self._lock:
            self._records.insert(0, record)
            logger.debug(f"Prescription store now holds {len(self._records)} records")
        return record

    def list(self, patient_identifier: Optional[str] = None) -> List[PrescriptionRecord]:
        """Newest first; all records when ``patient_identifier`` is None."""
        with self._lock:
            if patient_identifier is None:
                return list(self._records)
            return [r for r in self._records if r.patient_identifier == patient_identifier]

    def update_status(self, prescription_id: str, status: PrescriptionStatus) -> Optional[PrescriptionRecord]:
        """Return the updated record, or None if no record has this id."""
        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == prescription_id:
                    updated = replace(record, status=status)
                    self._records[index] = updated
                    return updated
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
