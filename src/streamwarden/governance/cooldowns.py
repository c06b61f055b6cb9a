"""DynamoDB cooldown store - persisted action suppression windows.

Each cooldown is one item keyed by its cooldown key. Items carry an
``expires_at`` epoch and a DynamoDB TTL attribute; DynamoDB deletes
expired items lazily, so reads compare ``expires_at`` against the clock.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import boto3
from botocore.exceptions import ClientError


logger = logging.getLogger(__name__)


class DynamoDBCooldownStore:
    """Cooldown windows in a DynamoDB table.

    Environment variables:
    - STREAMWARDEN_COOLDOWN_TABLE: DynamoDB table for cooldowns
    - AWS_REGION: AWS region
    """

    DEFAULT_REGION = "us-east-1"

    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize cooldown store.

        Args:
            table_name: DynamoDB table for cooldowns (or env var)
            region: AWS region
            aws_profile: AWS profile name
            clock: Returns the current UTC time. Defaults to datetime.now.
        """
        self.table_name = table_name or os.environ.get("STREAMWARDEN_COOLDOWN_TABLE")
        if not self.table_name:
            raise ValueError("Cooldown table name required")

        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            dynamodb = session.resource("dynamodb", region_name=self.region)
        else:
            dynamodb = boto3.resource("dynamodb", region_name=self.region)

        self.table = dynamodb.Table(self.table_name)
        logger.info(f"Initialized DynamoDBCooldownStore: table={self.table_name}")

    @staticmethod
    def _key(cooldown_key: str) -> dict:
        return {"pk": f"PK#COOLDOWN#{cooldown_key}", "sk": "SK#COOLDOWN"}

    def is_active(self, cooldown_key: str) -> bool:
        """Whether a cooldown window is currently open for the key.

        Raises:
            ClientError: If the DynamoDB read fails
        """
        try:
            response = self.table.get_item(Key=self._key(cooldown_key))
        except ClientError as e:
            logger.error(f"Failed to read cooldown {cooldown_key}: {e}")
            raise

        item = response.get("Item")
        if not item:
            return False

        now = int(self._clock().timestamp())
        return int(item.get("expires_at", 0)) > now

    def start(self, cooldown_key: str, minutes: int) -> None:
        """Open a new cooldown window, replacing any existing one.

        Raises:
            ValueError: If minutes is not positive
            ClientError: If the DynamoDB write fails
        """
        if minutes <= 0:
            raise ValueError("Cooldown minutes must be positive")

        now = self._clock()
        expires_at = int((now + timedelta(minutes=minutes)).timestamp())
        item = {
            **self._key(cooldown_key),
            "cooldown_key": cooldown_key,
            "minutes": minutes,
            "started_at": now.isoformat(),
            "expires_at": expires_at,
            "ttl_timestamp": expires_at,
        }

        try:
            self.table.put_item(Item=item)
            logger.debug(f"Started {minutes}m cooldown: {cooldown_key}")
        except ClientError as e:
            logger.error(f"Failed to start cooldown {cooldown_key}: {e}")
            raise
