"""Screen state and action routing for a FridgeSmart client."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fridgesmart_backend.services.analysis import AnalysisError, AnalysisGateway
from fridgesmart_backend.services.devices import (
    CAMERA,
    MICROPHONE,
    CameraHandle,
    CapabilityUnavailableError,
    DeviceRegistry,
)
from fridgesmart_backend.services.inventory import (
    DEFAULT_MANUAL_CATEGORY,
    DEFAULT_MANUAL_DAYS,
    DEFAULT_MANUAL_QUANTITY,
    InventoryItem,
    apply_item_edit,
    demo_items,
    new_manual_item,
)
from fridgesmart_backend.services.inventory_store import InventoryStore
from fridgesmart_backend.services.recipes import Recipe

logger = logging.getLogger(__name__)

EMPTY_INVENTORY_MESSAGE = "Add items to your inventory first!"
CAPTURE_FAILED_MESSAGE = "Could not capture a photo. Please try uploading one."


class AppView(str, Enum):
    DASHBOARD = "DASHBOARD"
    SCANNER = "SCANNER"
    INVENTORY = "INVENTORY"
    RECIPES = "RECIPES"
    IMPACT = "IMPACT"


class RecipeMode(str, Enum):
    DEFAULT = "default"
    RESCUE = "rescue"


class RecipeStatus(str, Enum):
    """``IDLE`` means nothing was requested; ``READY`` may hold zero recipes."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class EmptyInventoryError(RuntimeError):
    """Raised when an action needs inventory items and there are none."""


class ActionInProgressError(RuntimeError):
    """Raised when the same long-running action is triggered twice."""


class GatewayNotConfiguredError(RuntimeError):
    """Raised when no model credentials were configured."""


class ScanPreviewMissingError(RuntimeError):
    """Raised when a preview action runs with no scan results on screen."""


class ItemNotFoundError(LookupError):
    """Raised when an identifier does not match any on-screen record."""


@dataclass
class ScanSession:
    preview: list[InventoryItem] | None = None
    in_flight: bool = False
    generation: int = 0
    camera_error: str | None = None


@dataclass
class RecipeSession:
    mode: RecipeMode = RecipeMode.DEFAULT
    status: RecipeStatus = RecipeStatus.IDLE
    recipes: list[Recipe] = field(default_factory=list)
    # recipe id -> item key ("ing-0", "step-2") -> checked
    checked: dict[str, dict[str, bool]] = field(default_factory=dict)
    generation: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "status": self.status.value,
            "recipes": [recipe.to_dict() for recipe in self.recipes],
            "checked": {key: dict(value) for key, value in self.checked.items()},
        }


class FridgeSmartController:
    """Hold the active view and route user actions to the store and gateway.

    State changes happen under a lock, which is never held across a model
    call. A result that arrives after the user navigated away from the screen
    that requested it is dropped.
    """

    def __init__(
        self,
        store: InventoryStore,
        gateway: AnalysisGateway | None,
        devices: DeviceRegistry | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._devices = devices or DeviceRegistry()
        self._lock = threading.RLock()
        self._view = AppView.DASHBOARD
        self._scan = ScanSession()
        self._recipes = RecipeSession()
        self._voice_error: str | None = None

    @property
    def store(self) -> InventoryStore:
        return self._store

    @property
    def view(self) -> AppView:
        with self._lock:
            return self._view

    def state(self) -> dict[str, Any]:
        with self._lock:
            return {
                "view": self._view.value,
                "recipeMode": self._recipes.mode.value,
                "cameraActive": self._devices.is_held(CAMERA),
                "cameraError": self._scan.camera_error,
                "listening": self._devices.is_held(MICROPHONE),
                "voiceError": self._voice_error,
                "scanInFlight": self._scan.in_flight,
                "recipeStatus": self._recipes.status.value,
            }

    # Navigation

    def navigate(self, view: AppView) -> AppView:
        with self._lock:
            previous = self._view
            if previous is view:
                return view

            if previous is AppView.SCANNER:
                self._leave_scanner()
            if previous is AppView.RECIPES:
                self._recipes = RecipeSession(
                    generation=self._recipes.generation + 1
                )
            if view is not AppView.RECIPES:
                self._recipes.mode = RecipeMode.DEFAULT

            self._view = view
            if view is AppView.SCANNER:
                self._enter_scanner()
            logger.info(
                "navigated", extra={"from_view": previous.value, "to_view": view.value}
            )
            return view

    def _enter_scanner(self) -> None:
        # The assistant overlay is hidden on the scanner screen.
        self._devices.release(MICROPHONE)
        self._scan.camera_error = None
        try:
            self._devices.acquire(CAMERA)
        except CapabilityUnavailableError as exc:
            self._scan.camera_error = str(exc)

    def _leave_scanner(self) -> None:
        self._devices.release(CAMERA)
        self._scan = ScanSession(generation=self._scan.generation + 1)

    def close(self) -> None:
        """Release every device still held."""
        with self._lock:
            self._devices.release_all()

    def _require_gateway(self) -> AnalysisGateway:
        if self._gateway is None:
            raise GatewayNotConfiguredError("analysis gateway is not configured")
        return self._gateway

    # Scanning

    def scan_preview(self) -> list[InventoryItem] | None:
        with self._lock:
            preview = self._scan.preview
            return list(preview) if preview is not None else None

    def scan_image(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> list[InventoryItem] | None:
        """Analyze a photo and show the detected items as an editable preview.

        Returns ``None`` when the user left the scanner before the result
        arrived. ``AnalysisError`` propagates after the preview is cleared.
        """

        gateway = self._require_gateway()
        with self._lock:
            if self._view is not AppView.SCANNER:
                self.navigate(AppView.SCANNER)
            if self._scan.in_flight:
                raise ActionInProgressError("an image is already being analyzed")
            self._scan.in_flight = True
            self._scan.preview = None
            generation = self._scan.generation

        items: list[InventoryItem] | None = None
        try:
            items = gateway.analyze_image(image_bytes, mime_type)
        except AnalysisError:
            logger.warning("scan failed; preview discarded")
            raise
        finally:
            with self._lock:
                if generation == self._scan.generation:
                    self._scan.in_flight = False
                    self._scan.preview = items

        with self._lock:
            if generation != self._scan.generation:
                logger.info("discarding scan result after navigation")
                return None
        return list(items)

    def capture_photo(self) -> list[InventoryItem] | None:
        """Grab a frame from the open camera, release it, then scan the frame."""

        with self._lock:
            handle = self._devices.get(CAMERA) if self._view is AppView.SCANNER else None
            if handle is None:
                raise CapabilityUnavailableError(CAMERA, self._scan.camera_error)

        try:
            image_bytes = _capture(handle)
        finally:
            with self._lock:
                self._devices.release(CAMERA)
        return self.scan_image(image_bytes, "image/jpeg")

    def add_manual_item(
        self,
        name: str,
        *,
        quantity: str = DEFAULT_MANUAL_QUANTITY,
        category: str = DEFAULT_MANUAL_CATEGORY,
        days_until_expiration: int = DEFAULT_MANUAL_DAYS,
    ) -> InventoryItem:
        """Add a hand-entered item to the top of the scan preview."""

        item = new_manual_item(
            name,
            quantity=quantity,
            category=category,
            days_until_expiration=days_until_expiration,
        )
        with self._lock:
            self._scan.preview = [item, *(self._scan.preview or [])]
        return item

    def update_preview_item(
        self, item_id: str, field_name: str, value: object
    ) -> InventoryItem:
        with self._lock:
            for item in self._scan.preview or []:
                if item.id == item_id:
                    return apply_item_edit(item, field_name, value)
        raise ItemNotFoundError(f"item {item_id!r} is not in the scan preview")

    def commit_scan(self) -> list[InventoryItem]:
        """Append the preview to the inventory and show the inventory."""

        with self._lock:
            preview = self._scan.preview
            if preview is None:
                raise ScanPreviewMissingError("there are no scanned items to save")
            self._store.append(preview)
            self._scan.preview = None
            self.navigate(AppView.INVENTORY)
            logger.info("scan committed", extra={"item_count": len(preview)})
            return list(preview)

    def discard_scan(self) -> None:
        with self._lock:
            self._scan.preview = None

    # Inventory

    def load_demo(self) -> list[InventoryItem]:
        with self._lock:
            items = demo_items()
            self._store.replace(items)
            self.navigate(AppView.INVENTORY)
            return items

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            return self._store.remove(item_id)

    # Recipes

    def recipe_session(self) -> RecipeSession:
        with self._lock:
            return self._recipes

    def generate_recipes(self, mode: RecipeMode = RecipeMode.DEFAULT) -> RecipeSession:
        """Request a recipe batch for the current inventory.

        An empty inventory is rejected before any model call.
        """

        inventory = self._store.items()
        if not inventory:
            raise EmptyInventoryError(EMPTY_INVENTORY_MESSAGE)
        gateway = self._require_gateway()

        with self._lock:
            self.navigate(AppView.RECIPES)
            session = self._recipes
            if session.status is RecipeStatus.LOADING:
                raise ActionInProgressError("recipes are already being generated")
            session.mode = mode
            session.status = RecipeStatus.LOADING
            session.recipes = []
            session.checked = {}
            generation = session.generation

        recipes: list[Recipe] | None = None
        try:
            if mode is RecipeMode.RESCUE:
                recipes = gateway.generate_rescue_recipes(inventory)
            else:
                recipes = gateway.generate_recipes(inventory)
        finally:
            with self._lock:
                if generation == self._recipes.generation:
                    if recipes is None:
                        self._recipes.status = RecipeStatus.IDLE
                    else:
                        self._recipes.recipes = recipes
                        self._recipes.status = RecipeStatus.READY
                else:
                    logger.info("discarding recipes after navigation")
        return self._recipes

    def request_rescue(self) -> RecipeSession:
        """Open the recipes screen in rescue mode and generate when possible."""

        with self._lock:
            self.navigate(AppView.RECIPES)
            self._recipes.mode = RecipeMode.RESCUE
        if not self._store.items():
            return self._recipes
        return self.generate_recipes(RecipeMode.RESCUE)

    def toggle_check(self, recipe_id: str, key: str) -> bool:
        with self._lock:
            if not any(recipe.id == recipe_id for recipe in self._recipes.recipes):
                raise ItemNotFoundError(f"recipe {recipe_id!r} is not on screen")
            flags = self._recipes.checked.setdefault(recipe_id, {})
            flags[key] = not flags.get(key, False)
            return flags[key]

    # Assistant

    def chat(self, message: str) -> str:
        text = (message or "").strip()
        if not text:
            raise ValueError("message is required")
        gateway = self._require_gateway()
        return gateway.chat(text, self._store.items())

    def start_listening(self) -> bool:
        """Acquire the microphone; returns False with an inline message if absent."""

        with self._lock:
            if self._view is AppView.SCANNER:
                self._voice_error = "Voice input is not available while scanning."
                return False
            try:
                self._devices.acquire(MICROPHONE)
            except CapabilityUnavailableError as exc:
                self._voice_error = str(exc)
                return False
            self._voice_error = None
            return True

    def stop_listening(self) -> None:
        with self._lock:
            self._devices.release(MICROPHONE)


def _capture(handle: object) -> bytes:
    camera: CameraHandle = handle  # type: ignore[assignment]
    try:
        return camera.capture_jpeg()
    except Exception as exc:
        logger.warning("camera capture failed: %s", exc)
        raise CapabilityUnavailableError(CAMERA, CAPTURE_FAILED_MESSAGE) from exc
