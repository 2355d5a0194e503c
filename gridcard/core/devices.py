"""Push a card to every device on the account, concurrently and independently."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from gridcard.config import DEPLOY_MAX_WORKERS
from gridcard.core.errors import UpstreamError
from gridcard.core.yoto_api import YotoApi
from gridcard.models.jobs import DeploymentResult, Device, DeviceOutcome

logger = logging.getLogger(__name__)


def list_devices(api: YotoApi) -> List[Device]:
    body = api.get_json("/device-v2/devices/mine")
    items = body.get("devices") if isinstance(body, dict) else body
    if not isinstance(items, list):
        raise UpstreamError(f"Device list response has no devices array: {body!r}")
    devices = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed device entry: %r", item)
            continue
        device_id = item.get("deviceId") or item.get("id")
        if not device_id:
            continue
        devices.append(Device(device_id=device_id, name=item.get("name") or "", online=item.get("online")))
    return devices


def deploy_to_device(api: YotoApi, device: Device, card_id: str) -> DeviceOutcome:
    """One deployment request; any failure is captured in the outcome, never raised."""
    try:
        api.post_json(f"/device-v2/{device.device_id}/playlist", {"cardId": card_id})
    except Exception as e:
        logger.warning("Deploy of card %s to device %s failed: %s", card_id, device.device_id, e)
        return DeviceOutcome(device_id=device.device_id, name=device.name, ok=False, error=str(e))
    return DeviceOutcome(device_id=device.device_id, name=device.name, ok=True)


def deploy_to_all_devices(
    api: YotoApi,
    card_id: str,
    max_workers: int = DEPLOY_MAX_WORKERS,
) -> DeploymentResult:
    """Fire one request per device, wait for all. Listing errors propagate; per-device errors do not."""
    devices = list_devices(api)
    if not devices:
        return DeploymentResult(success_count=0, failed_count=0, total_devices=0)
    with ThreadPoolExecutor(max_workers=min(max_workers, len(devices))) as pool:
        outcomes = list(pool.map(lambda d: deploy_to_device(api, d, card_id), devices))
    ok = sum(1 for o in outcomes if o.ok)
    logger.info("Device deployment: %d/%d successful", ok, len(outcomes))
    return DeploymentResult(
        success_count=ok,
        failed_count=len(outcomes) - ok,
        total_devices=len(outcomes),
        outcomes=outcomes,
    )
