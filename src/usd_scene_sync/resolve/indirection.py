"""Render settings -> render product -> camera selection chain.

The active camera is whatever camera record the selected product names. The
chain is re-derived from the mirror on every resolution pass so that
destroyed settings, products or cameras never leave a dangling selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Optional

from usd_scene_sync.logging_policy import DebugPolicy, load_debug_policy
from usd_scene_sync.mirror.attribute_mirror import AttributeMirror


logger = logging.getLogger(__name__)


class SelectionState(Enum):
    NO_SETTINGS_SELECTED = "no_settings_selected"
    SETTINGS_SELECTED = "settings_selected"
    PRODUCT_SELECTED = "product_selected"


@dataclass(frozen=True)
class Selection:
    """Immutable view of the selection chain."""

    state: SelectionState = SelectionState.NO_SETTINGS_SELECTED
    settings_path: Optional[str] = None
    product_name: Optional[str] = None
    camera_path: Optional[str] = None


class IndirectionResolver:
    def __init__(self, *, debug_policy: Optional[DebugPolicy] = None) -> None:
        policy = debug_policy or load_debug_policy({})
        self._log = policy.logging.log_camera_chain
        self._settings_path: Optional[str] = None
        self._product_name: Optional[str] = None
        self._camera_path: Optional[str] = None

    @property
    def state(self) -> SelectionState:
        if self._settings_path is None:
            return SelectionState.NO_SETTINGS_SELECTED
        if self._product_name is None:
            return SelectionState.SETTINGS_SELECTED
        return SelectionState.PRODUCT_SELECTED

    @property
    def camera_path(self) -> Optional[str]:
        return self._camera_path

    def selection(self) -> Selection:
        return Selection(
            state=self.state,
            settings_path=self._settings_path,
            product_name=self._product_name,
            camera_path=self._camera_path,
        )

    def reset(self) -> None:
        self._settings_path = None
        self._product_name = None
        self._camera_path = None

    def select_settings(self, mirror: AttributeMirror, path: Optional[str]) -> bool:
        """Select a render settings record; any failure clears the chain."""
        if path is None or path not in mirror.render_settings:
            if path is not None:
                logger.debug("render settings %s unknown; selection cleared", path)
            self.reset()
            self._trace("select_settings(%r) -> False", path)
            return False
        self._settings_path = path
        self._product_name = None
        self._camera_path = None
        self._trace("select_settings(%r) -> True", path)
        return True

    def select_product(self, mirror: AttributeMirror, name: Optional[str]) -> bool:
        """Select a product of the selected settings.

        ``None`` clears the product. An unknown name fails and keeps the last
        valid product and camera.
        """
        settings = mirror.render_settings.get(self._settings_path) if self._settings_path is not None else None
        if settings is None:
            self.reset()
            self._trace("select_product(%r) -> False (no settings)", name)
            return False
        if name is None:
            self._product_name = None
            self._camera_path = None
            self._trace("select_product(None) -> False")
            return False
        if name not in settings.products:
            logger.debug("render product %s unknown in %s; keeping %s", name, self._settings_path, self._product_name)
            self._trace("select_product(%r) -> False", name)
            return False
        self._product_name = name
        self._camera_path = self._camera_for(mirror, settings.products[name].camera_path)
        self._trace("select_product(%r) -> True camera=%s", name, self._camera_path)
        return True

    def revalidate(self, mirror: AttributeMirror) -> None:
        if self._settings_path is None:
            return
        settings = mirror.render_settings.get(self._settings_path)
        if settings is None:
            self._trace("settings %s gone; selection cleared", self._settings_path)
            self.reset()
            return
        if self._product_name is None:
            self._camera_path = None
            return
        product = settings.products.get(self._product_name)
        if product is None:
            self._trace("product %s gone from %s", self._product_name, self._settings_path)
            self._product_name = None
            self._camera_path = None
            return
        self._camera_path = self._camera_for(mirror, product.camera_path)

    @staticmethod
    def _camera_for(mirror: AttributeMirror, camera_path: Optional[str]) -> Optional[str]:
        if camera_path is None or camera_path not in mirror.cameras:
            return None
        return camera_path

    def _trace(self, msg: str, *args: object) -> None:
        if self._log:
            logger.info("camera chain: " + msg, *args)


__all__ = ["IndirectionResolver", "Selection", "SelectionState"]
