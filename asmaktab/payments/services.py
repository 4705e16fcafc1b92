"""Service layer for payment submissions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import GoogleAPICallError

from asmaktab.constants import (
    MAX_DISCOUNT,
    PAYMENT_STATUS_SUBMITTED,
    PAYMENTS_COLLECTION,
)
from asmaktab.errors import StoreError, ValidationError
from asmaktab.utils import utcnow, validate_document_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def payable_amount(amount: float, discount: Any) -> float:
    """Apply a percentage discount to an amount, rounded to two places."""
    percent = min(max(float(discount or 0), 0.0), float(MAX_DISCOUNT))
    return round(amount * (100 - percent) / 100, 2)


class PaymentService:
    """Service class for payment-related operations."""

    @staticmethod
    def submit_payment(
        db: Client, student: dict[str, Any], data: dict[str, Any], discount: Any = 0
    ) -> str:
        """Store a submitted payment carrying the student's discount at this moment."""
        course_id = validate_document_id(data.get("courseId"), "course ID")
        try:
            amount = float(data.get("amount"))  # type: ignore[arg-type]
        except (TypeError, ValueError) as e:
            raise ValidationError("Amount must be a number") from e
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        payment_data = {
            "studentEmail": student.get("email"),
            "studentName": student.get("name"),
            "studentId": student.get("id"),
            "courseId": course_id,
            "courseName": data.get("courseName"),
            "month": data.get("month"),
            "year": data.get("year"),
            "amount": amount,
            "discount": discount or 0,
            "payableAmount": payable_amount(amount, discount),
            "paymentDate": None,
            "status": PAYMENT_STATUS_SUBMITTED,
            "transactionId": data.get("transactionId") or None,
            "paymentMethod": data.get("paymentMethod"),
            "senderInfo": data.get("senderInfo"),
            "createdAt": utcnow(),
        }
        try:
            _, payment_ref = db.collection(PAYMENTS_COLLECTION).add(payment_data)
        except GoogleAPICallError as e:
            logger.error(f"Error submitting payment for {student.get('email')}: {e}")
            raise StoreError() from e

        logger.info(
            f"Payment {payment_ref.id} submitted by {student.get('email')} "
            f"with {payment_data['discount']}% discount"
        )
        return payment_ref.id
