"""
status_bar.py
Bottom strip of the window: the mod currently applied by the randomizer and
a collapsible activity log. Log lines are also appended to the log file.
"""

from datetime import datetime

import customtkinter as ctk

from Utils.config_paths import get_log_path
from gui.theme import (
    BG_DEEP,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BORDER,
    FONT_MONO,
    FONT_SMALL,
    TEXT_DIM,
    TEXT_MAIN,
)

_SHOW = "Log ▲"
_HIDE = "Log ▼"


class StatusBar(ctk.CTkFrame):
    _HEIGHTS = {False: 26, True: 140}

    def __init__(self, parent):
        super().__init__(parent, fg_color=BG_DEEP, corner_radius=0,
                         height=self._HEIGHTS[False])
        self.grid_propagate(False)
        self._expanded = False

        ctk.CTkFrame(self, fg_color=BORDER, height=1, corner_radius=0).pack(fill="x")

        strip = ctk.CTkFrame(self, fg_color=BG_PANEL, corner_radius=0, height=24)
        strip.pack(fill="x")

        ctk.CTkLabel(strip, text="Current mod:", font=FONT_SMALL,
                     text_color=TEXT_DIM).pack(side="left", padx=(8, 4))
        self._mod_label = ctk.CTkLabel(strip, text="None", font=FONT_SMALL,
                                       text_color=TEXT_MAIN, anchor="w")
        self._mod_label.pack(side="left")

        self._log_btn = ctk.CTkButton(
            strip, text=_SHOW, width=64, height=18,
            fg_color=BG_HEADER, hover_color=BG_HOVER,
            text_color=TEXT_DIM, font=FONT_SMALL,
            command=lambda: self._set_expanded(not self._expanded),
        )
        self._log_btn.pack(side="right", padx=6, pady=3)

        # packed only while expanded
        self._log_box = ctk.CTkTextbox(self, font=FONT_MONO, fg_color=BG_DEEP,
                                       text_color=TEXT_MAIN, state="disabled",
                                       wrap="word", corner_radius=0)

    def _set_expanded(self, expanded: bool) -> None:
        if expanded == self._expanded:
            return
        self._expanded = expanded
        if expanded:
            self._log_box.pack(fill="both", expand=True)
        else:
            self._log_box.pack_forget()
        self.configure(height=self._HEIGHTS[expanded])
        self._log_btn.configure(text=_HIDE if expanded else _SHOW)

    def show_log(self) -> None:
        self._set_expanded(True)

    def set_current_mod(self, name: str) -> None:
        self._mod_label.configure(text=name or "None")

    def log(self, message: str) -> None:
        now = datetime.now()
        self._log_box.configure(state="normal")
        self._log_box.insert("end", f"{now:%H:%M:%S}  {message}\n")
        self._log_box.see("end")
        self._log_box.configure(state="disabled")
        try:
            with open(get_log_path(), "a", encoding="utf-8") as f:
                f.write(f"{now:%Y-%m-%d %H:%M:%S}  {message}\n")
        except OSError:
            pass
