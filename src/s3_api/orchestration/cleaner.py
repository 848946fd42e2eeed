"""Background removal of distributions left behind by deleted websites.

Website deletion and create rollback only disable a distribution because
the provider refuses to delete it until the disable has deployed. The
cleaner periodically deletes distributions that are deployed, disabled,
tagged with our org and whose origin bucket no longer exists.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from s3_api.apierror import ApiError
from s3_api.config import CleanerSettings
from s3_api.gateways.registry import AccountServices
from s3_api.orchestration.buckets import ORG_TAG_KEY

logger = logging.getLogger(__name__)


def cleaner_interval(settings: CleanerSettings) -> float:
    interval = settings.interval + random.uniform(0, settings.max_splay)
    logger.info("cleaner: using interval of %.1fs", interval)
    return interval


class DistributionCleaner:
    def __init__(self, services: AccountServices, settings: CleanerSettings) -> None:
        self.services = services
        self.settings = settings
        self.interval = cleaner_interval(settings)
        self._task: asyncio.Task | None = None

    async def _is_orphan_candidate(self, distribution: dict[str, Any]) -> bool:
        if distribution.get("Status") != "Deployed" or distribution.get("Enabled"):
            return False
        arn = distribution.get("ARN", "")
        logger.debug(
            "cleaner: distribution %s (%s) is deployed but disabled",
            distribution.get("DomainName"),
            distribution.get("Comment"),
        )
        try:
            tags = await self.services.cloudfront.list_tags(arn)
        except ApiError as exc:
            logger.error("cleaner: failed to list tags for resource %s: %s", arn, exc.message)
            return False
        return {"Key": ORG_TAG_KEY, "Value": self.services.org} in tags

    async def run_once(self) -> list[str]:
        """Delete orphaned distributions and return their ids."""
        logger.debug("cleaner: starting cleanup for account %s", self.services.name)
        cloudfront = self.services.cloudfront
        candidates = await cloudfront.list_distributions_with_filter(self._is_orphan_candidate)

        deleted: list[str] = []
        for distribution in candidates:
            origin = distribution.get("DefaultCacheBehavior", {}).get("TargetOriginId", "")
            if not origin or await self.services.s3.bucket_exists(origin):
                continue
            distribution_id = distribution["Id"]
            logger.info(
                "cleaner: distribution %s is deployed and disabled, bucket %s is gone, deleting",
                distribution_id,
                origin,
            )
            await cloudfront.delete_distribution(distribution_id)
            deleted.append(distribution_id)
        return deleted

    async def run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.run_once()
            except ApiError as exc:
                logger.error("cleaner: error executing cleaner: %s", exc)
            except Exception:
                logger.exception("cleaner: unexpected error executing cleaner")

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(
                self.run_forever(), name=f"distribution-cleaner-{self.services.name}"
            )
            logger.info("cleaner: started for account %s", self.services.name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("cleaner: stopped for account %s", self.services.name)


def build_cleaners(registry: dict[str, AccountServices]) -> list[DistributionCleaner]:
    return [
        DistributionCleaner(services, services.account.cleaner)
        for services in registry.values()
        if services.account.cleaner is not None
    ]
