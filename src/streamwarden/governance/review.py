"""Confirmation Queue - operator approval for gated rule actions.

Features:
- Pending confirmation state (DynamoDB)
- Approve / reject decisions with reviewer tracking
- Mandatory comment on rejection
- Expiry of stale confirmations

Approving a confirmation records the decision only; carrying out the
approved action is the job of the approval workflow that consumes it.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError

from streamwarden.common.constants import DataConstants
from streamwarden.common.exceptions import ConfirmationError
from streamwarden.rules.executors.deps import ConfirmationPayload


logger = logging.getLogger(__name__)


class ConfirmationStatus(str, Enum):
    """States of a confirmation request."""
    PENDING = "PENDING"      # Awaiting operator decision
    APPROVED = "APPROVED"    # Operator approved the action
    REJECTED = "REJECTED"    # Operator rejected the action
    EXPIRED = "EXPIRED"      # Not decided within the expiry window


class ConfirmationDecision(str, Enum):
    """Decisions an operator can take."""
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class ConfirmationQueue:
    """Manages confirmation requests for gated actions.

    Environment variables:
    - STREAMWARDEN_CONFIRMATION_TABLE: DynamoDB table for confirmations
    - AWS_REGION: AWS region
    """

    DEFAULT_REGION = "us-east-1"

    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        expiry_hours: int = DataConstants.CONFIRMATION_EXPIRY_HOURS,
        require_reject_comment: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize confirmation queue.

        Args:
            table_name: DynamoDB table for confirmations (or env var)
            region: AWS region
            aws_profile: AWS profile name
            expiry_hours: Hours a request stays decidable
            require_reject_comment: Whether rejections need a comment
            clock: Returns the current UTC time. Defaults to datetime.now.
        """
        self.table_name = table_name or os.environ.get("STREAMWARDEN_CONFIRMATION_TABLE")
        if not self.table_name:
            raise ValueError("Confirmation table name required")

        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)
        self.expiry_hours = expiry_hours
        self.require_reject_comment = require_reject_comment
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            dynamodb = session.resource("dynamodb", region_name=self.region)
        else:
            dynamodb = boto3.resource("dynamodb", region_name=self.region)

        self.table = dynamodb.Table(self.table_name)

        logger.info(f"Initialized ConfirmationQueue: table={self.table_name}")

    @staticmethod
    def _key(confirmation_id: str) -> Dict[str, str]:
        return {
            "pk": f"PK#CONFIRMATION#{confirmation_id}",
            "sk": "SK#CONFIRMATION",
        }

    def _with_effective_status(self, item: Dict[str, Any]) -> Dict[str, Any]:
        item = dict(item)
        if "expires_at" in item:
            item["expires_at"] = int(item["expires_at"])
        if (
            item.get("status") == ConfirmationStatus.PENDING.value
            and item.get("expires_at", 0) <= int(self._clock().timestamp())
        ):
            item["status"] = ConfirmationStatus.EXPIRED.value
        return item

    def enqueue(self, payload: ConfirmationPayload) -> str:
        """Queue an action for operator confirmation.

        Args:
            payload: Rule, session and action awaiting approval

        Returns:
            Confirmation ID

        Raises:
            ClientError: If the DynamoDB write fails
        """
        confirmation_id = f"conf_{uuid4().hex[:12]}"
        now = self._clock()
        expires_at = int((now + timedelta(hours=self.expiry_hours)).timestamp())

        item = {
            **self._key(confirmation_id),
            "confirmation_id": confirmation_id,
            "rule_id": payload.rule_id,
            "rule_name": payload.rule_name,
            "session_id": payload.session_id,
            "server_user_id": payload.server_user_id,
            "server_id": payload.server_id,
            "action": payload.action.model_dump(mode="json", exclude_none=True),
            "status": ConfirmationStatus.PENDING.value,
            "created_at": now.isoformat(),
            "expires_at": expires_at,
            "history": [],
            "gsi1_pk": f"CONFIRMATION#{ConfirmationStatus.PENDING.value}",
            "gsi1_sk": now.isoformat(),
            "gsi2_pk": f"USER#{payload.server_user_id}",
            "gsi2_sk": now.isoformat(),
        }

        try:
            self.table.put_item(Item=item)
            logger.info(f"Queued confirmation {confirmation_id} for rule {payload.rule_id}")
            return confirmation_id
        except ClientError as e:
            logger.error(f"Failed to queue confirmation: {e}")
            raise

    def get_confirmation(self, confirmation_id: str) -> Optional[Dict[str, Any]]:
        """Get a confirmation request, with expiry applied to its status."""
        try:
            response = self.table.get_item(Key=self._key(confirmation_id))
        except ClientError as e:
            logger.error(f"Failed to get confirmation: {e}")
            return None

        item = response.get("Item")
        return self._with_effective_status(item) if item else None

    def get_pending(
        self,
        limit: int = DataConstants.PENDING_CONFIRMATIONS_LIMIT,
    ) -> List[Dict[str, Any]]:
        """Get undecided, unexpired confirmation requests, most recent first."""
        try:
            response = self.table.query(
                IndexName="gsi1_pk-gsi1_sk-index",
                KeyConditionExpression="gsi1_pk = :status",
                ExpressionAttributeValues={
                    ":status": f"CONFIRMATION#{ConfirmationStatus.PENDING.value}",
                },
                Limit=limit,
                ScanIndexForward=False,
            )
        except ClientError as e:
            logger.error(f"Failed to get pending confirmations: {e}")
            return []

        items = [self._with_effective_status(i) for i in response.get("Items", [])]
        return [i for i in items if i["status"] == ConfirmationStatus.PENDING.value]

    def resolve(
        self,
        confirmation_id: str,
        decision: ConfirmationDecision,
        reviewer_id: str,
        comment: Optional[str] = None,
    ) -> bool:
        """Record an operator decision on a pending request.

        Args:
            confirmation_id: Confirmation ID
            decision: APPROVE or REJECT
            reviewer_id: Reviewer identifier
            comment: Comment (required for REJECT)

        Returns:
            True if the decision was recorded, False on a storage error

        Raises:
            ConfirmationError: If validation fails or the request is no
                longer pending
        """
        if decision == ConfirmationDecision.REJECT and self.require_reject_comment and not comment:
            raise ConfirmationError(
                "Comment required when rejecting an action",
                details={"confirmation_id": confirmation_id},
            )

        now = self._clock()
        new_status = {
            ConfirmationDecision.APPROVE: ConfirmationStatus.APPROVED.value,
            ConfirmationDecision.REJECT: ConfirmationStatus.REJECTED.value,
        }[decision]
        record = {
            "decision": decision.value,
            "reviewer_id": reviewer_id,
            "comment": comment or "",
            "timestamp": now.isoformat(),
        }

        try:
            self.table.update_item(
                Key=self._key(confirmation_id),
                UpdateExpression=(
                    "SET #status = :status, #history = list_append(#history, :record), "
                    "gsi1_pk = :gsi1_pk, updated_at = :updated_at"
                ),
                ConditionExpression="#status = :pending AND expires_at > :now",
                ExpressionAttributeNames={
                    "#status": "status",
                    "#history": "history",
                },
                ExpressionAttributeValues={
                    ":status": new_status,
                    ":record": [record],
                    ":gsi1_pk": f"CONFIRMATION#{new_status}",
                    ":updated_at": now.isoformat(),
                    ":pending": ConfirmationStatus.PENDING.value,
                    ":now": int(now.timestamp()),
                },
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise ConfirmationError(
                    f"Confirmation {confirmation_id} is not pending",
                    details={"confirmation_id": confirmation_id},
                ) from e
            logger.error(f"Failed to resolve confirmation: {e}")
            return False

        logger.info(f"Confirmation {confirmation_id} {new_status.lower()} by {reviewer_id}")
        return True
