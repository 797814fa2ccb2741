"""
Modal dialogs used by ProfilePanel.
Uses theme only; does not import panels or App to avoid circular imports.
"""

import tkinter as tk

import customtkinter as ctk

from gui.theme import (
    ACCENT,
    ACCENT_HOV,
    BG_DEEP,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BORDER,
    FONT_BOLD,
    FONT_MONO,
    FONT_NORMAL,
    RED_BTN,
    RED_HOV,
    TEXT_ERR,
    TEXT_MAIN,
    TEXT_OK,
)


# ---------------------------------------------------------------------------
# Message dialogs
# ---------------------------------------------------------------------------

def _center_dialog(dlg, parent, w: int, h: int):
    """Position dlg centered over parent using a known fixed size."""
    try:
        x = parent.winfo_rootx() + (parent.winfo_width() - w) // 2
        y = parent.winfo_rooty() + (parent.winfo_height() - h) // 2
        dlg.geometry(f"{w}x{h}+{x}+{y}")
    except (AttributeError, tk.TclError):
        dlg.geometry(f"{w}x{h}")


def _message_dialog(title: str, message: str, parent, icon: str, icon_color: str,
                    buttons: list[tuple[str, object, str, str]], default=None):
    """Build a small icon + message dialog; returns the value of the clicked button.

    buttons: (text, value, fg_color, hover_color), laid out right to left.
    """
    result = [default]

    dlg = ctk.CTkToplevel(parent, fg_color=BG_DEEP)
    dlg.title(title)
    dlg.resizable(False, False)
    if parent is not None:
        dlg.transient(parent)
    _center_dialog(dlg, parent, 400, 160)

    body = ctk.CTkFrame(dlg, fg_color="transparent")
    body.pack(fill="x", padx=20, pady=(18, 4))
    ctk.CTkLabel(body, text=icon, font=("", 26, "bold"),
                 text_color=icon_color, width=36).pack(side="left", anchor="n", padx=(0, 12))
    ctk.CTkLabel(body, text=message, font=FONT_NORMAL,
                 text_color=TEXT_MAIN, wraplength=300, justify="left").pack(side="left")

    btn_row = ctk.CTkFrame(dlg, fg_color="transparent")
    btn_row.pack(fill="x", padx=20, pady=(8, 16))

    def _choose(value):
        result[0] = value
        dlg.destroy()

    for text, value, fg, hover in buttons:
        ctk.CTkButton(btn_row, text=text, width=80, font=FONT_BOLD,
                      fg_color=fg, hover_color=hover, text_color="white",
                      command=lambda v=value: _choose(v)).pack(side="right", padx=4)

    dlg.after(50, dlg.grab_set)
    dlg.wait_window()
    return result[0]


def show_info(title: str, message: str, parent=None) -> None:
    _message_dialog(title, message, parent, "✓", TEXT_OK,
                    [("OK", True, ACCENT, ACCENT_HOV)])


def show_error(title: str, message: str, parent=None) -> None:
    """Dark-themed error dialog."""
    _message_dialog(title, message, parent, "✕", TEXT_ERR,
                    [("OK", True, ACCENT, ACCENT_HOV)])


def ask_delete(title: str, message: str, parent=None) -> bool:
    """Confirmation with a red Delete button. Returns True if Delete was clicked."""
    return bool(_message_dialog(
        title, message, parent, "!", TEXT_ERR,
        [("Cancel", False, BG_PANEL, BG_HEADER), ("Delete", True, RED_BTN, RED_HOV)],
        default=False,
    ))


# ---------------------------------------------------------------------------
# Profile name prompt
# ---------------------------------------------------------------------------

class _NameDialog(ctk.CTkToplevel):
    """Modal one-line prompt. result stays None when cancelled.

    Blank input is returned as-is; ProfileSession rejects it with a message.
    """

    def __init__(self, parent, title: str, prompt: str, initial: str, ok_text: str):
        super().__init__(parent, fg_color=BG_DEEP)
        self.title(title)
        self.resizable(False, False)
        self.transient(parent)
        _center_dialog(self, parent, 360, 136)
        self.protocol("WM_DELETE_WINDOW", self._close)

        self.result: str | None = None

        ctk.CTkLabel(self, text=prompt, font=FONT_NORMAL, text_color=TEXT_MAIN,
                     anchor="w").pack(fill="x", padx=16, pady=(14, 4))

        self._entry = ctk.CTkEntry(self, font=FONT_NORMAL, fg_color=BG_PANEL,
                                   text_color=TEXT_MAIN, border_color=BORDER)
        self._entry.insert(0, initial)
        self._entry.pack(fill="x", padx=16)
        self._entry.bind("<Return>", self._accept)
        self._entry.bind("<Escape>", lambda _e: self._close())

        row = ctk.CTkFrame(self, fg_color="transparent")
        row.pack(fill="x", padx=12, pady=10)
        for text, command, fg, hover, font in (
            ("Cancel", self._close, BG_HEADER, BG_HOVER, FONT_NORMAL),
            (ok_text, self._accept, ACCENT, ACCENT_HOV, FONT_BOLD),
        ):
            ctk.CTkButton(row, text=text, width=80, height=28, font=font,
                          fg_color=fg, hover_color=hover, text_color=TEXT_MAIN,
                          command=command).pack(side="right", padx=4)

        self.after(80, self._focus_entry)

    def _focus_entry(self):
        try:
            self.grab_set()
            self._entry.focus_set()
            self._entry.select_range(0, "end")
        except tk.TclError:
            # window closed before it was mapped
            pass

    def _accept(self, _event=None):
        self.result = self._entry.get()
        self._close()

    def _close(self):
        self.grab_release()
        self.destroy()


def ask_string(title: str, prompt: str, parent, initial: str = "",
               ok_text: str = "OK") -> str | None:
    """Return the entered text, or None if the dialog was cancelled."""
    dlg = _NameDialog(parent, title, prompt, initial, ok_text)
    parent.wait_window(dlg)
    return dlg.result


# ---------------------------------------------------------------------------
# Import results
# ---------------------------------------------------------------------------

class ImportResultsDialog(ctk.CTkToplevel):
    """Lists imported, skipped, and missing items after an import."""

    def __init__(self, parent, lines: list[str]):
        super().__init__(parent, fg_color=BG_DEEP)
        self.title("Import Results")
        self.geometry("460x340")
        self.transient(parent)
        self.protocol("WM_DELETE_WINDOW", self.destroy)
        self.after(100, self.grab_set)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        box = ctk.CTkTextbox(self, font=FONT_MONO, fg_color=BG_PANEL,
                             text_color=TEXT_MAIN, wrap="word", corner_radius=4)
        box.grid(row=0, column=0, sticky="nsew", padx=12, pady=(12, 6))
        box.insert("end", "\n".join(lines))
        box.configure(state="disabled")

        ctk.CTkButton(self, text="OK", width=80, font=FONT_BOLD,
                      fg_color=ACCENT, hover_color=ACCENT_HOV, text_color="white",
                      command=self.destroy).grid(row=1, column=0, sticky="e", padx=12, pady=(0, 12))
