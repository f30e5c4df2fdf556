from __future__ import annotations

import logging
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, simpledialog, ttk
from typing import Any, Optional

from . import aggregate as agg
from . import timegrid
from ._util import _fmt_minutes, _sparkline
from .actions import copy_fixed, fill_night, find_sleep_event, push_recent, tag
from .catalog import (
    Catalog,
    add_category,
    add_event,
    category_only_event,
    delete_category,
    delete_event,
)
from .colors import color_for
from .gesture import Effect, GestureRecognizer, GestureState, selection_info
from .paths import resolve_data_path
from .segments import rows
from .settings import is_dark
from .storage import Store
from .transfer import ImportRejected, build_export, default_export_name, export_to_file, import_from_file

logger = logging.getLogger(__name__)

MOUSE = "mouse"  # tk reports a single pointer

RAIL_H = 16
CELL_H = 34
ROW_GAP = 6
ROW_H = RAIL_H + CELL_H + ROW_GAP
LEFT_PAD = 10
RIGHT_PAD = 10
TOP_PAD = 8
STATS_TOP = 6  # bars before the rest folds into Other

LIGHT = {"bg": "#ffffff", "cell": "#f4f6fa", "line": "#e3e7ee", "text": "#111827", "sub": "#6b7280",
         "sel": "#cfe3ff", "sel_line": "#3b82f6"}
DARK = {"bg": "#0b0f17", "cell": "#111827", "line": "#1f2937", "text": "#f9fafb", "sub": "#9ca3af",
        "sel": "#1e3a8a", "sel_line": "#60a5fa"}


class DayGridApp(tk.Tk):
    def __init__(self, store: Store):
        super().__init__()
        self.title("DayGrid")
        self.geometry("720x760")
        self.store = store

        self.date_key = timegrid.today_key()
        self.settings = store.load_settings()
        self.categories, self.events, self.recent = store.load_meta()
        self.day = store.load_day(self.date_key)

        self.recognizer = GestureRecognizer()
        self._press_xy: tuple[int, int] = (0, 0)
        self._redraw_job: str | None = None

        self._build_header()
        self._build_tabs()
        self._refresh_all()

    # -------- Crash guard --------

    def report_callback_exception(self, exc, val, tb):  # type: ignore[override]
        logger.error("Unhandled UI error", exc_info=(exc, val, tb))
        try:
            messagebox.showerror("Crash prevented", f"{exc.__name__}: {val}")
        except tk.TclError:
            pass

    def _safe_cmd(self, fn):
        def wrapped(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                logger.exception("Command failed")
                try:
                    messagebox.showerror("Crash prevented", f"{type(e).__name__}: {e}")
                except tk.TclError:
                    pass
                return None

        return wrapped

    # -------- State helpers --------

    @property
    def dark(self) -> bool:
        return is_dark(self.settings)

    @property
    def palette(self) -> dict[str, str]:
        return DARK if self.dark else LIGHT

    @property
    def catalog(self) -> Catalog:
        return Catalog(self.categories, self.events)

    @property
    def day_start(self) -> int:
        return int(self.settings["dayStartHour"])

    def _save_meta(self) -> None:
        self.store.save_meta(self.categories, self.events, self.recent)

    def _set_day(self, day: dict[str, Any]) -> None:
        self.day = day
        self.store.save_day(day)

    def _swatch(self, event_id: str):
        return color_for(self.catalog.category_of(event_id) or agg.DELETED_CATEGORY, event_id, self.dark)

    # -------------------------
    # Header
    # -------------------------

    def _build_header(self) -> None:
        frm = ttk.Frame(self, padding=10)
        frm.pack(fill="x")

        ttk.Button(frm, text="◀", width=3, command=self._safe_cmd(lambda: self._go_day(-1))).pack(side="left")
        ttk.Button(frm, text="Today", command=self._safe_cmd(self._go_today)).pack(side="left", padx=4)
        ttk.Button(frm, text="▶", width=3, command=self._safe_cmd(lambda: self._go_day(1))).pack(side="left")

        self.date_var = tk.StringVar()
        ttk.Label(frm, textvariable=self.date_var, font=("TkDefaultFont", 14, "bold")).pack(side="left", padx=12)

        self.path_var = tk.StringVar(value=str(self.store.data_path))
        ttk.Label(frm, textvariable=self.path_var, foreground="#666").pack(side="right")

    def _go_day(self, delta: int) -> None:
        self._load_date(timegrid.add_days(self.date_key, delta))

    def _go_today(self) -> None:
        self._load_date(timegrid.today_key())

    def _load_date(self, date_key: str) -> None:
        self.date_key = date_key
        self.day = self.store.load_day(date_key)
        self.recognizer = GestureRecognizer()
        self._refresh_all()

    # -------------------------
    # Tabs
    # -------------------------

    def _build_tabs(self) -> None:
        self.nb = ttk.Notebook(self)
        self.nb.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        self.tab_record = ttk.Frame(self.nb, padding=6)
        self.tab_stats = ttk.Frame(self.nb, padding=10)
        self.tab_more = ttk.Frame(self.nb, padding=10)

        self.nb.add(self.tab_record, text="Record")
        self.nb.add(self.tab_stats, text="Stats")
        self.nb.add(self.tab_more, text="More")

        self._build_record_tab()
        self._build_stats_tab()
        self._build_more_tab()

    def _refresh_all(self) -> None:
        self.date_var.set(self.date_key)
        self._draw_grid()
        self._refresh_recent_bar()
        self._refresh_selection_label()
        self._refresh_stats()
        self._refresh_meta_lists()

    # -------------------------
    # Record tab
    # -------------------------

    def _build_record_tab(self) -> None:
        tools = ttk.Frame(self.tab_record)
        tools.pack(fill="x", pady=(0, 6))
        ttk.Button(tools, text="Copy fixed from yesterday", command=self._safe_cmd(self._copy_fixed)).pack(
            side="left"
        )
        ttk.Button(tools, text="Fill sleep", command=self._safe_cmd(lambda: self._fill_sleep(False))).pack(
            side="left", padx=6
        )
        ttk.Button(
            tools, text="Fill sleep (override)", command=self._safe_cmd(lambda: self._fill_sleep(True))
        ).pack(side="left")

        body = ttk.Frame(self.tab_record)
        body.pack(fill="both", expand=True)

        self.grid_canvas = tk.Canvas(body, highlightthickness=0, bg=self.palette["bg"])
        scroll = ttk.Scrollbar(body, orient="vertical", command=self.grid_canvas.yview)
        self.grid_canvas.configure(yscrollcommand=scroll.set)
        scroll.pack(side="right", fill="y")
        self.grid_canvas.pack(side="left", fill="both", expand=True)

        self.grid_canvas.bind("<Configure>", self._schedule_redraw)
        self.grid_canvas.bind("<ButtonPress-1>", self._on_press)
        self.grid_canvas.bind("<B1-Motion>", self._on_motion)
        self.grid_canvas.bind("<ButtonRelease-1>", self._on_release)
        self.grid_canvas.bind("<MouseWheel>", self._on_wheel)
        self.grid_canvas.bind("<Button-4>", lambda _e: self.grid_canvas.yview_scroll(-1, "units"))
        self.grid_canvas.bind("<Button-5>", lambda _e: self.grid_canvas.yview_scroll(1, "units"))

        sheet = ttk.Frame(self.tab_record, padding=(0, 6, 0, 0))
        sheet.pack(fill="x")

        self.sel_var = tk.StringVar(value="")
        ttk.Label(sheet, textvariable=self.sel_var).pack(anchor="w")

        self.recent_bar = ttk.Frame(sheet)
        self.recent_bar.pack(fill="x", pady=4)

        actions = ttk.Frame(sheet)
        actions.pack(fill="x")
        ttk.Button(actions, text="Pick event…", command=self._safe_cmd(self._open_picker)).pack(side="left")
        ttk.Button(actions, text="Clear slots", command=self._safe_cmd(lambda: self._apply(None))).pack(
            side="left", padx=6
        )
        ttk.Button(actions, text="Deselect", command=self._safe_cmd(self._deselect)).pack(side="left")

    def _schedule_redraw(self, _evt=None) -> None:
        if self._redraw_job is not None:
            self.after_cancel(self._redraw_job)
        self._redraw_job = self.after(60, self._draw_grid)

    def _geometry(self) -> tuple[float, float]:
        width = max(1, self.grid_canvas.winfo_width())
        cell_w = (width - LEFT_PAD - RIGHT_PAD) / timegrid.SLOTS_PER_ROW
        return LEFT_PAD, max(1.0, cell_w)

    def _slot_at(self, x: float, y: float) -> Optional[int]:
        left, cell_w = self._geometry()
        cy = self.grid_canvas.canvasy(y) - TOP_PAD
        if cy < 0:
            return None
        row, within = divmod(cy, ROW_H)
        if within < RAIL_H or within >= RAIL_H + CELL_H:
            return None
        col = int((x - left) // cell_w)
        if not 0 <= col < timegrid.SLOTS_PER_ROW or not 0 <= row < timegrid.ROWS:
            return None
        return int(row) * timegrid.SLOTS_PER_ROW + col

    def _draw_grid(self) -> None:
        self._redraw_job = None
        c = self.grid_canvas
        pal = self.palette
        c.delete("all")
        c.configure(bg=pal["bg"])

        left, cell_w = self._geometry()
        selection = self.recognizer.selection

        for r, pieces in enumerate(rows(self.day["slots"])):
            row_start = r * timegrid.SLOTS_PER_ROW
            top = TOP_PAD + r * ROW_H
            cell_top = top + RAIL_H

            # hour rail, never covered by segments
            c.create_text(left, top + RAIL_H / 2, anchor="w", fill=pal["sub"],
                          text=timegrid.slot_to_time(row_start, self.day_start))
            c.create_text(left + 4 * cell_w, top + RAIL_H / 2, anchor="w", fill=pal["sub"],
                          text=timegrid.slot_to_time(row_start + 4, self.day_start))

            for col in range(timegrid.SLOTS_PER_ROW):
                slot = row_start + col
                x0 = left + col * cell_w
                is_sel = slot in selection
                c.create_rectangle(
                    x0 + 1, cell_top, x0 + cell_w - 1, cell_top + CELL_H,
                    fill=pal["sel"] if is_sel else pal["cell"],
                    outline=pal["sel_line"] if is_sel else pal["line"],
                )

            for piece in pieces:
                self._draw_piece(piece, row_start, cell_top, left, cell_w, selection)

        height = TOP_PAD * 2 + timegrid.ROWS * ROW_H
        c.configure(scrollregion=(0, 0, c.winfo_width(), height))

    def _draw_piece(self, piece, row_start, cell_top, left, cell_w, selection) -> None:
        c = self.grid_canvas
        swatch = self._swatch(piece.event_id)
        # inset only where the real run starts/ends; flat joins across rows
        x0 = left + (piece.start - row_start) * cell_w + (5 if piece.is_start_here else 0)
        x1 = left + (piece.end - row_start) * cell_w - (5 if piece.is_end_here else 0)
        y0, y1 = cell_top + 4, cell_top + CELL_H - 4
        stipple = "gray50" if any(s in selection for s in range(piece.start, piece.end)) else ""
        c.create_rectangle(x0, y0, x1, y1, fill=swatch.fill, outline="", stipple=stipple)
        if piece.is_start_here:
            c.create_rectangle(x0, y0, x0 + 4, y1, fill=swatch.accent, outline="")
            minutes = piece.segment.length * timegrid.SLOT_MINUTES
            c.create_text(
                x0 + 8, (y0 + y1) / 2, anchor="w", fill=self.palette["text"],
                text=f"{self.catalog.label(piece.event_id)} · {minutes}m",
            )
        if piece.is_end_here:
            c.create_rectangle(x1 - 2, y0, x1, y1, fill=swatch.accent, outline="")

    # -------- Pointer handling --------

    def _on_press(self, event) -> None:
        self._press_xy = (event.x, event.y)
        slot = self._slot_at(event.x, event.y)
        if slot is None:
            return
        if self.recognizer.press(MOUSE, slot, event.x, event.y) is not Effect.NONE:
            self._after_selection_change()

    def _on_motion(self, event) -> None:
        if self.recognizer.state is GestureState.SCROLL_CANCELLED:
            self.grid_canvas.scan_dragto(self._press_xy[0], event.y, gain=1)
            return
        effect = self.recognizer.move(MOUSE, self._slot_at(event.x, event.y), event.x, event.y)
        if effect is Effect.RELEASE_TO_SCROLL:
            self.grid_canvas.scan_mark(*self._press_xy)
            self.grid_canvas.scan_dragto(self._press_xy[0], event.y, gain=1)
        elif effect in (Effect.SELECT, Effect.CAPTURE):
            self._after_selection_change()

    def _on_release(self, _event) -> None:
        self.recognizer.release(MOUSE)

    def _on_wheel(self, event) -> None:
        self.grid_canvas.yview_scroll(-1 if event.delta > 0 else 1, "units")

    def _after_selection_change(self) -> None:
        self._draw_grid()
        self._refresh_selection_label()

    def _refresh_selection_label(self) -> None:
        info = selection_info(self.recognizer.selection, self.day_start)
        if info is None:
            self.sel_var.set("Tap a slot, or drag sideways to select a range.")
            return
        self.sel_var.set(
            f"Selected {info.start_time}–{info.end_time} · {_fmt_minutes(info.minutes)} "
            f"({len(self.recognizer.selection)} slots)"
        )

    def _deselect(self) -> None:
        self.recognizer.clear()
        self._after_selection_change()

    # -------- Tagging --------

    def _refresh_recent_bar(self) -> None:
        for child in self.recent_bar.winfo_children():
            child.destroy()
        catalog = self.catalog
        for eid in self.recent:
            if catalog.event(eid) is None:
                continue
            ttk.Button(
                self.recent_bar,
                text=catalog.label(eid),
                command=self._safe_cmd(lambda e=eid: self._apply(e)),
            ).pack(side="left", padx=(0, 4))

    def _apply(self, event_id: Optional[str]) -> None:
        selection = self.recognizer.selection
        if not selection:
            return
        day, self.recent = tag(self.day, self.recent, selection, event_id)
        self._set_day(day)
        self._save_meta()
        self.recognizer.clear()
        self._refresh_all()

    def _open_picker(self) -> None:
        if not self.recognizer.selection:
            messagebox.showinfo("Pick event", "Select some slots first.")
            return

        top = tk.Toplevel(self)
        top.title("Pick event")
        top.transient(self)
        frm = ttk.Frame(top, padding=10)
        frm.pack(fill="both", expand=True)

        catalog = self.catalog

        def pick(event_id: str) -> None:
            top.destroy()
            self._apply(event_id)

        def pick_category(category_id: str) -> None:
            self.events, event_id = category_only_event(self.events, category_id)
            pick(event_id)

        for cat in self.categories:
            cid = str(cat.get("id"))
            box = ttk.LabelFrame(frm, text=catalog.category_name(cid), padding=6)
            box.pack(fill="x", pady=4)
            ttk.Button(box, text="(category only)", command=self._safe_cmd(lambda c=cid: pick_category(c))).pack(
                side="left", padx=2
            )
            for evt in self.events:
                if evt.get("categoryId") != cid or not evt.get("name"):
                    continue
                eid = str(evt["id"])
                ttk.Button(box, text=str(evt["name"]), command=self._safe_cmd(lambda e=eid: pick(e))).pack(
                    side="left", padx=2
                )

    def _copy_fixed(self) -> None:
        prev = self.store.load_day(timegrid.add_days(self.date_key, -1))
        self._set_day(copy_fixed(self.day, prev, self.events))
        self._refresh_all()

    def _fill_sleep(self, override: bool) -> None:
        sleep_id = find_sleep_event(self.events)
        if not sleep_id:
            messagebox.showinfo("Fill sleep", "There is no 'Sleep' event yet. Add one under More.")
            return
        day = fill_night(
            self.day,
            sleep_id,
            self.settings["nightStart"],
            self.settings["nightEnd"],
            override=override,
            day_start_hour=self.day_start,
        )
        self._set_day(day)
        self.recent = push_recent(self.recent, sleep_id)
        self._save_meta()
        self._refresh_all()

    # -------------------------
    # Stats tab
    # -------------------------

    def _build_stats_tab(self) -> None:
        top = ttk.Frame(self.tab_stats)
        top.pack(fill="x")

        ttk.Label(top, text="Window:").pack(side="left")
        self.stats_window = tk.StringVar(value="day")
        for w in ("day", "week", "month"):
            ttk.Radiobutton(top, text=w.title(), value=w, variable=self.stats_window,
                            command=self._safe_cmd(self._refresh_stats)).pack(side="left", padx=4)

        ttk.Label(top, text="By:").pack(side="left", padx=(16, 0))
        self.stats_by = tk.StringVar(value="event")
        for b in ("event", "category"):
            ttk.Radiobutton(top, text=b.title(), value=b, variable=self.stats_by,
                            command=self._safe_cmd(self._refresh_stats)).pack(side="left", padx=4)

        self.stats_canvas = tk.Canvas(self.tab_stats, height=260, highlightthickness=0)
        self.stats_canvas.pack(fill="x", pady=8)
        self.stats_canvas.bind("<Configure>", lambda _e: self._refresh_stats())

        self.stats_out = tk.Text(self.tab_stats, height=10, wrap="word")
        self.stats_out.pack(fill="both", expand=True)

    def _refresh_stats(self) -> None:
        if not hasattr(self, "stats_canvas"):
            return
        catalog = self.catalog
        load_day = self.store.day_loader()
        ov = agg.overview(self.date_key, load_day, catalog)
        window = {"day": ov.day, "week": ov.week, "month": ov.month}[self.stats_window.get()]
        rows_ = agg.ranked_rows(window, catalog, by=self.stats_by.get(), n=STATS_TOP, dark=self.dark)

        c = self.stats_canvas
        pal = self.palette
        c.delete("all")
        c.configure(bg=pal["bg"])
        w = max(1, c.winfo_width())
        if not rows_:
            c.create_text(w // 2, 40, text="No data", fill=pal["sub"])
        else:
            peak = max(r.minutes for r in rows_)
            bar_h = 22
            for i, row in enumerate(rows_):
                y = 8 + i * (bar_h + 4)
                bar_w = max(4, (w - 220) * row.minutes / peak)
                c.create_rectangle(10, y, 10 + bar_w, y + bar_h, fill=row.fill, outline=row.accent)
                c.create_text(16, y + bar_h / 2, anchor="w", fill=pal["text"], text=row.label)
                c.create_text(w - 10, y + bar_h / 2, anchor="e", fill=pal["sub"],
                              text=f"{_fmt_minutes(row.minutes)} · {row.share * 100:.0f}%")

        lines = [
            f"Day   {self.date_key}: {_fmt_minutes(ov.day.total_minutes)}",
            f"Week  from {timegrid.week_start(self.date_key)}: {_fmt_minutes(ov.week.total_minutes)}",
            f"Month {self.date_key[:7]}: {_fmt_minutes(ov.month.total_minutes)}",
            "",
            f"Last 7 days {_sparkline([float(m) for _, m in ov.trend], vmin=0.0)}",
        ]
        lines += [f"  {k}: {_fmt_minutes(m)}" for k, m in ov.trend]
        self.stats_out.delete("1.0", tk.END)
        self.stats_out.insert(tk.END, "\n".join(lines))

    # -------------------------
    # More tab
    # -------------------------

    def _build_more_tab(self) -> None:
        cats = ttk.LabelFrame(self.tab_more, text="Categories", padding=6)
        cats.pack(fill="x")
        self.cat_list = tk.Listbox(cats, height=5)
        self.cat_list.pack(fill="x")
        row = ttk.Frame(cats)
        row.pack(fill="x", pady=4)
        ttk.Button(row, text="Add…", command=self._safe_cmd(self._add_category)).pack(side="left")
        ttk.Button(row, text="Delete", command=self._safe_cmd(self._delete_category)).pack(side="left", padx=6)

        evts = ttk.LabelFrame(self.tab_more, text="Events", padding=6)
        evts.pack(fill="x", pady=8)
        self.evt_list = tk.Listbox(evts, height=8)
        self.evt_list.pack(fill="x")
        row = ttk.Frame(evts)
        row.pack(fill="x", pady=4)
        ttk.Button(row, text="Add to selected category…", command=self._safe_cmd(self._add_event)).pack(side="left")
        ttk.Button(row, text="Delete", command=self._safe_cmd(self._delete_event)).pack(side="left", padx=6)

        data = ttk.LabelFrame(self.tab_more, text="Data", padding=6)
        data.pack(fill="x")
        ttk.Button(data, text="Export day…", command=self._safe_cmd(self._export)).pack(side="left")
        ttk.Button(data, text="Import…", command=self._safe_cmd(self._import)).pack(side="left", padx=6)
        ttk.Button(data, text="Toggle dark", command=self._safe_cmd(self._toggle_dark)).pack(side="left")

    def _refresh_meta_lists(self) -> None:
        if not hasattr(self, "cat_list"):
            return
        catalog = self.catalog
        self.cat_list.delete(0, tk.END)
        for c in self.categories:
            self.cat_list.insert(tk.END, catalog.category_name(str(c.get("id"))))
        self.evt_list.delete(0, tk.END)
        for e in self.events:
            flag = "  [fixed]" if e.get("fixed") else ""
            self.evt_list.insert(tk.END, catalog.label(str(e.get("id"))) + flag)

    def _selected_index(self, lb: tk.Listbox) -> Optional[int]:
        sel = lb.curselection()
        return int(sel[0]) if sel else None

    def _add_category(self) -> None:
        name = simpledialog.askstring("Add category", "Name:", parent=self)
        if not name:
            return
        self.categories = add_category(self.categories, name)
        self._save_meta()
        self._refresh_all()

    def _delete_category(self) -> None:
        idx = self._selected_index(self.cat_list)
        if idx is None:
            return
        if not messagebox.askyesno("Delete category", "Delete this category? Its events are kept."):
            return
        self.categories = delete_category(self.categories, str(self.categories[idx]["id"]))
        self._save_meta()
        self._refresh_all()

    def _add_event(self) -> None:
        idx = self._selected_index(self.cat_list)
        if idx is None:
            messagebox.showinfo("Add event", "Select a category first.")
            return
        name = simpledialog.askstring("Add event", "Name (blank for category only):", parent=self)
        if name is None:
            return
        fixed = messagebox.askyesno("Add event", "Carry it over with 'Copy fixed'?")
        self.events = add_event(self.events, str(self.categories[idx]["id"]), name, fixed=fixed)
        self._save_meta()
        self._refresh_all()

    def _delete_event(self) -> None:
        idx = self._selected_index(self.evt_list)
        if idx is None:
            return
        if not messagebox.askyesno("Delete event", "Delete this event? Slots on the shown day are cleared."):
            return
        event_id = str(self.events[idx]["id"])
        self.events, self.recent, day = delete_event(self.events, self.recent, self.day, event_id)
        self._set_day(day)
        self._save_meta()
        self._refresh_all()

    def _export(self) -> None:
        path = filedialog.asksaveasfilename(
            defaultextension=".json",
            initialfile=default_export_name(self.date_key),
            filetypes=[("JSON", "*.json")],
        )
        if not path:
            return
        export_to_file(Path(path), build_export(self.store, self.date_key))
        messagebox.showinfo("Export", f"Saved {path}")

    def _import(self) -> None:
        path = filedialog.askopenfilename(filetypes=[("JSON", "*.json")])
        if not path:
            return
        try:
            date_key = import_from_file(self.store, Path(path))
        except ImportRejected as e:
            messagebox.showerror("Import failed", f"Nothing was imported.\n\n{e}")
            return
        self.settings = self.store.load_settings()
        self.categories, self.events, self.recent = self.store.load_meta()
        self._load_date(date_key)

    def _toggle_dark(self) -> None:
        self.settings["themeMode"] = "light" if self.dark else "dark"
        self.store.save_settings(self.settings)
        self._refresh_all()


# -------------------------
# GUI Entrypoint
# -------------------------


def run_gui(argv=None) -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    data_path = resolve_data_path(None, None)
    app = DayGridApp(Store(data_path))
    app.mainloop()


if __name__ == "__main__":
    run_gui()
