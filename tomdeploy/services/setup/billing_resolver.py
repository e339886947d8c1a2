from __future__ import annotations

import logging
from typing import Optional

from tomdeploy.services.gcloud_service import GcloudService
from tomdeploy.services.setup.existence_guard import ProvisioningError


logger = logging.getLogger(__name__)


class BillingAccountError(ProvisioningError):
    pass


class BillingLinkageResolver:
    """Ensure a project has exactly one billing account attached.

    Already linked: nothing to do. Not linked: the operator's billing accounts
    are listed once; exactly one is linked, zero or several stop the run
    without linking anything. An ambiguous choice is never guessed.
    """

    def __init__(self, gcloud: GcloudService) -> None:
        self._gcloud = gcloud

    async def resolve(self, project_id: str) -> Optional[str]:
        """Returns the account id that was linked, or None if the project was already linked."""

        current = await self._gcloud.get_billing_account(project_id)
        if current:
            logger.info("OK. project %s is linked to %s", project_id, current)
            return None

        logger.info("Project %s has no billing account; looking for one to link", project_id)
        accounts = await self._gcloud.list_billing_accounts()

        if not accounts:
            raise BillingAccountError(
                "No billing account found. Set one up in the Google Cloud console, then rerun."
            )
        if len(accounts) > 1:
            raise BillingAccountError(
                f"Found {len(accounts)} billing accounts ({', '.join(accounts)}). Link one manually with "
                f"`gcloud billing projects link {project_id} --billing-account=<ACCOUNT_ID>` and rerun."
            )

        account = accounts[0]
        logger.info("Linking project %s with billing account %s", project_id, account)
        await self._gcloud.link_billing_account(project_id, account)
        return account
