"""
theme.py
Colours and fonts shared by the window, the profile panel and dialogs.
"""

import customtkinter as ctk

ctk.set_appearance_mode("dark")
ctk.set_default_color_theme("dark-blue")

# Backgrounds, darkest first
BG_DEEP    = "#121019"
BG_PANEL   = "#1c1924"
BG_HEADER  = "#26222f"
BG_ROW     = "#211e2a"
BG_ROW_ALT = "#25222e"
BG_HOVER   = "#3a2540"

# GX red, used for the primary buttons and checkboxes
ACCENT     = "#fa1e4e"
ACCENT_HOV = "#ff4a71"
RED_BTN    = "#8f2436"
RED_HOV    = "#ab2d42"

TEXT_MAIN  = "#e6e1ee"
TEXT_DIM   = "#8b8499"
TEXT_OK    = "#7fd39b"
TEXT_ERR   = "#ff6b81"
BORDER     = "#3b3546"

FONT_NORMAL = ("Segoe UI", 14)
FONT_BOLD   = ("Segoe UI", 14, "bold")
FONT_SMALL  = ("Segoe UI", 12)
FONT_MONO   = ("Consolas", 12)
