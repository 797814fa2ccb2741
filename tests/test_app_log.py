import threading

from Utils import app_log as log_module
from Utils.app_log import app_log, clear_app_log, recent_messages, set_app_log


class FakeTk:
    """Stands in for a Tk widget's after(): runs callbacks on request."""

    def __init__(self):
        self.scheduled = []

    def after(self, _ms, fn):
        self.scheduled.append(fn)

    def run_pending(self):
        jobs, self.scheduled = self.scheduled, []
        for fn in jobs:
            fn()


def test_history_is_replayed_when_panel_attaches():
    clear_app_log()
    app_log("before window")
    shown = []
    tk = FakeTk()
    try:
        set_app_log(shown.append, tk.after)
        tk.run_pending()
        app_log("on main thread")
    finally:
        clear_app_log()
    assert "before window" in shown
    assert shown[-1] == "on main thread"
    assert recent_messages()[-1] == "on main thread"


def test_messages_from_other_threads_are_queued():
    clear_app_log()
    shown = []
    tk = FakeTk()
    try:
        set_app_log(shown.append, tk.after)
        tk.run_pending()
        shown.clear()
        worker = threading.Thread(target=app_log, args=("from worker",))
        worker.start()
        worker.join()
        assert shown == []
        tk.run_pending()
    finally:
        clear_app_log()
    assert shown == ["from worker"]
    assert log_module._sink is None
