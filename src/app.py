"""
Mod Randomizer profile manager.

Entry point: builds the store, inventory, membership service, save
coordinator and session, then the window. The profile core runs on an
asyncio loop in a background thread (gui/async_bridge.py).
"""

from __future__ import annotations

import locale
from concurrent.futures import TimeoutError as FutureTimeout

import customtkinter as ctk

from Profiles.membership import MembershipService
from Profiles.save_coordinator import SaveCoordinator
from Profiles.session import ProfileSession
from Utils.app_log import app_log, clear_app_log, set_app_log
from Utils.app_settings import load_settings, resolve_extensions_dir, timing_seconds
from Utils.config_paths import get_store_path
from Utils.inventory import ExtensionInventory
from Utils.store import JsonStore
from gui.async_bridge import AsyncBridge
from gui.profile_panel import ProfilePanel
from gui.status_bar import StatusBar
from gui.theme import BG_DEEP
from version import __version__

_SHUTDOWN_TIMEOUT = 2.0


def build_session(settings: dict) -> ProfileSession:
    store = JsonStore(get_store_path())
    debounce, unlock_delay = timing_seconds(settings)
    membership = MembershipService(store)
    saver = SaveCoordinator(store, membership, debounce=debounce, unlock_delay=unlock_delay)
    update_url = settings["mod_update_url"]
    inventory = ExtensionInventory(store, resolve_extensions_dir(settings), update_url)
    return ProfileSession(store, inventory, membership, saver, update_url=update_url)


class App(ctk.CTk):
    def __init__(self, session: ProfileSession):
        super().__init__(fg_color=BG_DEEP)
        self.title(f"Mod Randomizer {__version__}")
        self.geometry("760x620")
        self.minsize(560, 420)

        self._session = session
        self._bridge = AsyncBridge(self)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        self._panel = ProfilePanel(self, session, self._bridge)
        self._panel.grid(row=0, column=0, sticky="nsew")
        self._status_bar = StatusBar(self)
        self._status_bar.grid(row=1, column=0, sticky="ew")

        set_app_log(self._status_bar.log, self.after)
        session.set_listeners(
            on_render=lambda d: self._bridge.to_main(self._panel.show_mods, d),
            on_profiles=lambda l: self._bridge.to_main(self._panel.show_profiles, l),
            on_current_mod=lambda n: self._bridge.to_main(self._status_bar.set_current_mod, n),
        )
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._bridge.start()
        self._bridge.submit(session.initialize(), on_error=self._on_init_error)
        self._bridge.submit(session.load_options(), self._panel.show_options)
        self._bridge.submit(session.current_mod(), self._status_bar.set_current_mod)

    def _on_init_error(self, exc: BaseException) -> None:
        app_log(f"Startup failed: {exc}")
        self._status_bar.show_log()

    def _on_close(self) -> None:
        future = self._bridge.submit(self._session.close())
        try:
            future.result(timeout=_SHUTDOWN_TIMEOUT)
        except FutureTimeout:
            app_log("Pending save did not finish before exit")
        except Exception as e:
            app_log(f"Shutdown: {e}")
        self._bridge.stop()
        clear_app_log()
        self.destroy()


def main() -> None:
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        pass
    app = App(build_session(load_settings()))
    app.mainloop()


if __name__ == "__main__":
    main()
