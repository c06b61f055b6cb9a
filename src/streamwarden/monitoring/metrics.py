"""Monitoring - track executed, deferred and failed actions and migrations."""

import logging, os
from datetime import datetime, timezone
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

import boto3
from botocore.exceptions import ClientError

from streamwarden.common.constants import MonitoringConstants
from streamwarden.rules.schemas import ActionResult

logger = logging.getLogger(__name__)


class MetricType(str, Enum):
    ACTION_EXECUTED = "action_executed"
    ACTION_SKIPPED = "action_skipped"
    ACTION_FAILED = "action_failed"
    RULES_MIGRATED = "rules_migrated"
    MIGRATION_ERRORS = "migration_errors"


@dataclass
class MetricPoint:
    metric_name: str
    value: float
    unit: str = "None"
    timestamp: Optional[datetime] = None
    dimensions: Optional[Dict[str, str]] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


class RuleMetricsCollector:
    """Collects and publishes rule enforcement metrics to CloudWatch."""

    DEFAULT_REGION = "us-east-1"
    DEFAULT_NAMESPACE = "StreamWarden"

    def __init__(self, namespace: Optional[str] = None, region: Optional[str] = None,
                 aws_profile: Optional[str] = None,
                 batch_size: int = MonitoringConstants.DEFAULT_BATCH_SIZE):
        self.namespace = namespace or os.environ.get("STREAMWARDEN_METRICS_NAMESPACE", self.DEFAULT_NAMESPACE)
        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)
        self.batch_size = batch_size
        self.metric_buffer: List[MetricPoint] = []

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.cloudwatch = session.client("cloudwatch", region_name=self.region)
        else:
            self.cloudwatch = boto3.client("cloudwatch", region_name=self.region)

        logger.info(f"Initialized RuleMetricsCollector: namespace={self.namespace}")

    def record_metric(self, metric: MetricPoint) -> None:
        """Record a metric point.

        Buffers metrics for batch publishing.
        """
        self.metric_buffer.append(metric)

        if len(self.metric_buffer) >= self.batch_size:
            self.flush()

    def record_action_result(self, rule_id: str, result: ActionResult) -> None:
        """Record the outcome of one action.

        Args:
            rule_id: Rule the action belongs to
            result: Action result
        """
        if not result.success:
            metric_type = MetricType.ACTION_FAILED
        elif result.skipped:
            metric_type = MetricType.ACTION_SKIPPED
        else:
            metric_type = MetricType.ACTION_EXECUTED

        self.record_metric(MetricPoint(
            metric_name=metric_type.value,
            value=1.0,
            unit="Count",
            dimensions={
                "rule_id": rule_id,
                "action_type": result.action_type,
            },
        ))

    def record_migration(self, migrated: int, errors: int) -> None:
        """Record the outcome of a legacy rule migration pass."""
        self.record_metric(MetricPoint(
            metric_name=MetricType.RULES_MIGRATED.value,
            value=float(migrated),
            unit="Count",
        ))
        self.record_metric(MetricPoint(
            metric_name=MetricType.MIGRATION_ERRORS.value,
            value=float(errors),
            unit="Count",
        ))

    def flush(self) -> None:
        """Flush buffered metrics to CloudWatch.

        Raises:
            IOError: If CloudWatch write fails
        """
        if not self.metric_buffer:
            return

        try:
            metric_data = []
            for metric in self.metric_buffer:
                metric_dict = {
                    "MetricName": metric.metric_name,
                    "Value": metric.value,
                    "Unit": metric.unit,
                    "Timestamp": metric.timestamp,
                }

                if metric.dimensions:
                    metric_dict["Dimensions"] = [
                        {"Name": k, "Value": str(v)}
                        for k, v in metric.dimensions.items()
                    ]

                metric_data.append(metric_dict)

            max_batch = MonitoringConstants.CLOUDWATCH_MAX_BATCH
            for i in range(0, len(metric_data), max_batch):
                self.cloudwatch.put_metric_data(
                    Namespace=self.namespace,
                    MetricData=metric_data[i:i + max_batch],
                )

            logger.debug(f"Published {len(self.metric_buffer)} metrics to CloudWatch")
            self.metric_buffer.clear()

        except ClientError as e:
            logger.error(f"Failed to publish metrics: {e}")
            raise IOError(f"CloudWatch write failed: {e}") from e

    def shutdown(self) -> None:
        """Flush remaining metrics on shutdown."""
        self.flush()
