"""
Profile panel: profile selector, mod checkbox list, bulk toggles, import/export
and the randomize options.

All state changes go through ProfileSession on the loop thread (via
AsyncBridge); this panel only mirrors what the session reports back.
"""

from __future__ import annotations

import tkinter as tk
import tkinter.filedialog
from pathlib import Path

import customtkinter as ctk

from Profiles.errors import ProfileError
from Profiles.merge import export_filename
from Profiles.models import KEY_RANDOMIZE_ALL, KEY_RANDOMIZE_TIME, KEY_TIME_UNIT, DisplayList, ProfileListing
from Utils.app_log import app_log
from Utils.time_units import UNITS
from gui.dialogs import ImportResultsDialog, ask_delete, ask_string, show_error, show_info
from gui.theme import (
    ACCENT,
    ACCENT_HOV,
    BG_DEEP,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BG_ROW,
    BG_ROW_ALT,
    BORDER,
    FONT_BOLD,
    FONT_NORMAL,
    FONT_SMALL,
    RED_BTN,
    RED_HOV,
    TEXT_DIM,
    TEXT_MAIN,
)

_TIME_INPUT_DEBOUNCE_MS = 400


class ProfilePanel(ctk.CTkFrame):
    def __init__(self, parent, session, bridge):
        super().__init__(parent, fg_color=BG_DEEP, corner_radius=0)
        self._session = session
        self._bridge = bridge

        self._profile_names: list[str] = []
        self._current_profile: str | None = None
        self._display: DisplayList | None = None
        self._vars: dict[str, tk.BooleanVar] = {}
        self._rows: list[tuple[str, ctk.CTkCheckBox]] = []
        self._time_after_id: str | None = None

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self._build_profile_bar()
        self._build_list_bar()
        self._build_list()
        self._build_options()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _button(self, parent, text, command, danger=False, width=70):
        return ctk.CTkButton(
            parent, text=text, width=width, height=28, font=FONT_SMALL,
            fg_color=RED_BTN if danger else BG_HEADER,
            hover_color=RED_HOV if danger else BG_HOVER,
            text_color=TEXT_MAIN, command=command,
        )

    def _build_profile_bar(self):
        bar = ctk.CTkFrame(self, fg_color=BG_PANEL, corner_radius=0)
        bar.grid(row=0, column=0, sticky="ew")
        ctk.CTkLabel(bar, text="Profile:", font=FONT_BOLD,
                     text_color=TEXT_MAIN).pack(side="left", padx=(10, 6), pady=8)
        self._profile_menu = ctk.CTkOptionMenu(
            bar, values=[""], width=180, font=FONT_NORMAL,
            fg_color=BG_HEADER, button_color=BG_HEADER, button_hover_color=BG_HOVER,
            command=self._on_profile_selected,
        )
        self._profile_menu.pack(side="left", pady=8)
        self._button(bar, "Export", self._on_export).pack(side="right", padx=(4, 10))
        self._button(bar, "Import", self._on_import).pack(side="right", padx=4)
        self._button(bar, "Delete", self._on_delete, danger=True).pack(side="right", padx=4)
        self._button(bar, "Rename", self._on_rename).pack(side="right", padx=4)
        self._button(bar, "New", self._on_new).pack(side="right", padx=4)

    def _build_list_bar(self):
        bar = ctk.CTkFrame(self, fg_color=BG_DEEP, corner_radius=0)
        bar.grid(row=1, column=0, sticky="ew", padx=10, pady=(8, 4))
        self._search_var = tk.StringVar()
        self._search_var.trace_add("write", lambda *_: self._apply_filter())
        ctk.CTkEntry(
            bar, textvariable=self._search_var, placeholder_text="Search mods…",
            font=FONT_NORMAL, fg_color=BG_PANEL, text_color=TEXT_MAIN, border_color=BORDER,
        ).pack(side="left", fill="x", expand=True)
        self._button(bar, "Reverse all", self._on_reverse_all, width=90).pack(side="right", padx=(4, 0))
        self._button(bar, "Toggle all", self._on_toggle_all, width=90).pack(side="right", padx=4)

    def _build_list(self):
        self._list_frame = ctk.CTkScrollableFrame(self, fg_color=BG_PANEL, corner_radius=4)
        self._list_frame.grid(row=2, column=0, sticky="nsew", padx=10, pady=4)
        self._list_frame.grid_columnconfigure(0, weight=1)
        self._empty_label = ctk.CTkLabel(
            self._list_frame, text="No mods detected.", font=FONT_NORMAL, text_color=TEXT_DIM
        )

    def _build_options(self):
        bar = ctk.CTkFrame(self, fg_color=BG_DEEP, corner_radius=0)
        bar.grid(row=3, column=0, sticky="ew", padx=10, pady=(4, 8))

        self._randomize_all_var = tk.BooleanVar(value=False)
        ctk.CTkSwitch(
            bar, text="Randomize all mods", variable=self._randomize_all_var,
            font=FONT_SMALL, text_color=TEXT_MAIN, progress_color=ACCENT,
            command=self._on_randomize_all,
        ).pack(side="left")

        self._unit_menu = ctk.CTkOptionMenu(
            bar, values=list(UNITS), width=100, font=FONT_SMALL,
            fg_color=BG_HEADER, button_color=BG_HEADER, button_hover_color=BG_HOVER,
            command=self._on_unit_changed,
        )
        self._unit_menu.pack(side="right")
        self._time_var = tk.StringVar()
        entry = ctk.CTkEntry(
            bar, textvariable=self._time_var, width=70, font=FONT_SMALL,
            fg_color=BG_PANEL, text_color=TEXT_MAIN, border_color=BORDER,
        )
        entry.pack(side="right", padx=4)
        entry.bind("<KeyRelease>", lambda _e: self._on_time_input())
        ctk.CTkLabel(bar, text="Randomize every", font=FONT_SMALL,
                     text_color=TEXT_DIM).pack(side="right", padx=4)

    # ------------------------------------------------------------------
    # Session -> panel
    # ------------------------------------------------------------------

    def show_profiles(self, listing: ProfileListing) -> None:
        self._profile_names = list(listing.names)
        self._current_profile = listing.current
        self._profile_menu.configure(values=self._profile_names or [""])
        self._profile_menu.set(listing.current)

    def show_mods(self, display: DisplayList) -> None:
        self._display = display
        for _, widget in self._rows:
            widget.destroy()
        self._rows.clear()
        self._vars.clear()
        self._randomize_all_var.set(display.randomize_all)

        if not display.rows:
            self._empty_label.grid(row=0, column=0, pady=20)
            return
        self._empty_label.grid_forget()

        for i, row in enumerate(display.rows):
            var = tk.BooleanVar(value=row.checked)
            cb = ctk.CTkCheckBox(
                self._list_frame, text=row.name, variable=var, font=FONT_NORMAL,
                text_color=TEXT_MAIN, fg_color=ACCENT, hover_color=ACCENT_HOV,
                bg_color=BG_ROW if i % 2 == 0 else BG_ROW_ALT,
                command=self._on_checkbox_changed,
                state="normal" if row.enabled else "disabled",
            )
            self._vars[row.id] = var
            self._rows.append((row.name, cb))
        self._apply_filter()

    def show_options(self, options: dict) -> None:
        self._randomize_all_var.set(options.get(KEY_RANDOMIZE_ALL, False))
        unit = options.get(KEY_TIME_UNIT) or "minutes"
        self._unit_menu.set(unit)
        self._time_var.set(options.get(KEY_RANDOMIZE_TIME) or "")

    def _apply_filter(self) -> None:
        query = self._search_var.get().strip().lower()
        visible = 0
        for name, widget in self._rows:
            if query in name.lower():
                widget.grid(row=visible, column=0, sticky="ew", padx=6, pady=2)
                visible += 1
            else:
                widget.grid_forget()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _report(self, title: str):
        def _show(exc: BaseException):
            if not isinstance(exc, ProfileError):
                app_log(f"{title}: {exc}")
            show_error(title, str(exc), parent=self.winfo_toplevel())
        return _show

    def _checked_ids(self) -> list[str]:
        return [mod_id for mod_id, var in self._vars.items() if var.get()]

    def _list_locked(self) -> bool:
        return self._display is None or self._display.randomize_all

    # ------------------------------------------------------------------
    # Mod list events
    # ------------------------------------------------------------------

    def _on_checkbox_changed(self):
        self._bridge.call_soon(self._session.record_edit, self._checked_ids())

    def _on_toggle_all(self):
        if self._list_locked() or not self._vars:
            return
        all_checked = all(var.get() for var in self._vars.values())
        for var in self._vars.values():
            var.set(not all_checked)
        self._bridge.call_soon(self._session.force_flush, self._checked_ids())

    def _on_reverse_all(self):
        if self._list_locked() or not self._vars:
            return
        for var in self._vars.values():
            var.set(not var.get())
        self._bridge.call_soon(self._session.force_flush, self._checked_ids())

    # ------------------------------------------------------------------
    # Profile events
    # ------------------------------------------------------------------

    def _on_profile_selected(self, name: str):
        previous = self._current_profile

        def _done(display):
            if display is None and previous is not None:
                # Ignored while a save is in flight; put the selector back
                self._profile_menu.set(previous)
            else:
                self._current_profile = name

        def _failed(exc):
            if previous is not None:
                self._profile_menu.set(previous)
            self._report("Switch Profile")(exc)

        self._bridge.submit(self._session.switch_profile(name), _done, _failed)

    def _on_new(self):
        name = ask_string("New Profile", "Profile name:", self.winfo_toplevel(), ok_text="Create")
        if name is None:
            return
        self._bridge.submit(self._session.create_profile(name),
                            on_error=self._report("New Profile"))

    def _on_rename(self):
        old = self._current_profile
        if not old:
            return
        new = ask_string("Rename Profile", "Enter new profile name:",
                         self.winfo_toplevel(), initial=old, ok_text="Rename")
        if new is None:
            return
        self._bridge.submit(self._session.rename_profile(old, new),
                            on_error=self._report("Rename Profile"))

    def _on_delete(self):
        name = self._current_profile
        if not name:
            return
        if not ask_delete("Delete Profile",
                          f'Delete profile "{name}"? This cannot be undone.',
                          parent=self.winfo_toplevel()):
            return
        self._bridge.submit(self._session.delete_profile(name),
                            on_error=self._report("Delete Profile"))

    def _on_import(self):
        path = tkinter.filedialog.askopenfilename(
            parent=self.winfo_toplevel(), title="Import Profiles",
            filetypes=[("Profile files", "*.json"), ("All files", "*")],
        )
        if not path:
            return
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            show_error("Import Error", f"Failed to import profiles: {e}",
                       parent=self.winfo_toplevel())
            return

        def _done(result):
            ImportResultsDialog(self.winfo_toplevel(), result.summary_lines())

        self._bridge.submit(self._session.import_profiles(text), _done,
                            self._report("Import Error"))

    def _on_export(self):
        path = tkinter.filedialog.asksaveasfilename(
            parent=self.winfo_toplevel(), title="Export Profiles",
            initialfile=export_filename(), defaultextension=".json",
            filetypes=[("Profile files", "*.json")],
        )
        if not path:
            return

        def _done(count):
            show_info("Export Successful", f"Exported {count} profile(s)",
                      parent=self.winfo_toplevel())

        self._bridge.submit(self._session.write_export(Path(path)), _done,
                            self._report("Export Error"))

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def _on_randomize_all(self):
        self._bridge.submit(
            self._session.set_toggle(KEY_RANDOMIZE_ALL, self._randomize_all_var.get()),
            on_error=self._report("Options"),
        )

    def _on_time_input(self):
        if self._time_after_id is not None:
            self.after_cancel(self._time_after_id)
        self._time_after_id = self.after(_TIME_INPUT_DEBOUNCE_MS, self._submit_time)

    def _submit_time(self):
        self._time_after_id = None
        raw, unit = self._time_var.get(), self._unit_menu.get()

        def _done(minutes):
            if minutes == 0:
                self._time_var.set("")

        self._bridge.submit(self._session.set_randomize_time(raw, unit), _done,
                            self._report("Randomize Time"))

    def _on_unit_changed(self, unit: str):

        def _done(text):
            if text is not None:
                self._time_var.set(text)

        self._bridge.submit(self._session.set_time_unit(unit), _done,
                            self._report("Randomize Time"))
