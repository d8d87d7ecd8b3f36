import datetime as dt
import logging
import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog

from devtasker.core.config import SYNC_INTERVAL_MS, TOPMOST, WINDOW_GEOMETRY
from devtasker.core.exceptions import ColumnInUseError, PBError
from devtasker.controller.app_controller import AppController
from devtasker.gui.column_view import ColumnView
from devtasker.services.board import DRAGGING

logger = logging.getLogger(__name__)

UNFILED = "__unfiled__"


class BoardWindow(tk.Tk):
    def __init__(self, controller: AppController, project_id: str = ""):
        super().__init__()
        self.controller = controller
        self.title("DevTasker · Board")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)
        self._dirty = False
        self._projects = []
        self._initial_project = project_id

        # Top bar
        top = ttk.Frame(self)
        top.pack(fill="x", pady=(0, 6))
        self.project_var = tk.StringVar()
        self.project_box = ttk.Combobox(top, textvariable=self.project_var, state="readonly", width=32)
        self.project_box.pack(side="left")
        self.project_box.bind("<<ComboboxSelected>>", self._on_project_selected)
        ttk.Button(top, text="Sync", command=self._sync).pack(side="right")
        ttk.Button(top, text="Remove column", command=self._on_remove_column).pack(side="right", padx=(0, 6))
        self.status_var = tk.StringVar(value="Ready")
        ttk.Label(top, textvariable=self.status_var).pack(side="left", padx=(12, 0))

        # Quick add
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 6))
        ttk.Label(header, text="New task:").pack(side="left")
        self.entry = ttk.Entry(header)
        self.entry.pack(side="left", fill="x", expand=True, padx=6)
        self.entry.bind("<Return>", self._on_add)
        ttk.Button(header, text="Add", command=self._on_add).pack(side="left")

        # Columns
        self.board_frame = ttk.Frame(self)
        self.board_frame.pack(fill="both", expand=True)
        self.columns = {}  # column_id -> ColumnView

        # store subscriptions
        self._unsubscribe = [
            controller.tasks.subscribe(self._on_store_change),
            controller.projects.subscribe(self._on_store_change),
        ]

        # timers / binds
        self.bind("<F5>", lambda e: self._sync())
        self.bind("<Escape>", self._on_cancel_drag)
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(SYNC_INTERVAL_MS, self._auto_sync)

        self._load_projects()

    # ---------- projects ----------
    def _load_projects(self):
        projects = self.controller.load_projects()
        if self.controller.projects.error:
            mb.showerror("Projects", f"Could not load projects: {self.controller.projects.error}")
            return
        self._projects = projects
        self.project_box["values"] = [p.name for p in projects]
        if projects:
            ids = [p.id for p in projects]
            idx = ids.index(self._initial_project) if self._initial_project in ids else 0
            self.project_box.current(idx)
            self._open(projects[idx].id)

    def _on_project_selected(self, _event=None):
        idx = self.project_box.current()
        if 0 <= idx < len(self._projects):
            self._open(self._projects[idx].id)

    def _open(self, project_id: str):
        if self.controller.open_project(project_id) is None:
            mb.showerror("Project", f"Project not found: {self.controller.projects.error}")
            return
        self._build_columns()
        self._render()

    # ---------- rendering ----------
    def _build_columns(self):
        for view in self.columns.values():
            view.destroy()
        self.columns = {}
        for i, col in enumerate(self.controller.columns()):
            self.columns[col.id] = self._column_view(col.id, col.title, col.color, i)

    def _column_view(self, column_id, title, color, index) -> ColumnView:
        view = ColumnView(
            self.board_frame,
            column_id,
            title,
            color,
            on_press=self._on_drag_start,
            on_motion=self._on_drag_motion,
            on_release=self._on_drag_end,
        )
        view.grid(row=0, column=index, sticky="ns", padx=(0, 8))
        self.board_frame.rowconfigure(0, weight=1)
        return view

    def _render(self):
        self._dirty = False
        for col in self.controller.board_columns():
            view = self.columns.get(col.id)
            if view is not None:
                view.set_tasks(col.tasks, col.over_wip_limit, col.wip_limit, col.task_count)
        unfiled = self.controller.unfiled()
        if unfiled:
            if UNFILED not in self.columns:
                self.columns[UNFILED] = self._column_view(UNFILED, "Unfiled", "#9CA3AF", len(self.columns))
            self.columns[UNFILED].set_tasks(unfiled)
        elif UNFILED in self.columns:
            self.columns.pop(UNFILED).destroy()
        error = self.controller.tasks.error or self.controller.projects.error
        if error:
            self.status_var.set(f"Error: {error}")
        else:
            stats = self.controller.stats()
            self.status_var.set(
                f"Synced {dt.datetime.now().strftime('%H:%M:%S')} · "
                f"{stats.total_tasks} tasks · {stats.completed_tasks} done · {stats.overdue_tasks} overdue · "
                f"{stats.time_logged_today}m logged today"
            )

    def _on_store_change(self, _store):
        # re-rendering destroys the card under the pointer, so wait for the drop
        if self.controller.drag.state == DRAGGING:
            self._dirty = True
            return
        self.after_idle(self._render)

    # ---------- sync ----------
    def _sync(self):
        project = self.controller.projects.current_project
        if project is not None:
            self.controller.tasks.load(project.id)

    def _auto_sync(self):
        try:
            if self.controller.drag.state != DRAGGING:
                self._sync()
        finally:
            self.after(SYNC_INTERVAL_MS, self._auto_sync)

    # ---------- drag and drop ----------
    def _on_drag_start(self, task_id: str):
        self.controller.drag.start(task_id)

    def _drop_target(self, event):
        widget = self.winfo_containing(event.x_root, event.y_root)
        while widget is not None:
            drop_id = getattr(widget, "drop_id", None)
            if drop_id is not None:
                return None if drop_id == UNFILED else drop_id
            widget = widget.master
        return None

    def _on_drag_motion(self, event):
        self.controller.drag.over(self._drop_target(event))

    def _on_drag_end(self, _event=None):
        self.controller.drag.end()
        if self._dirty:
            self._render()

    def _on_cancel_drag(self, _event=None):
        self.controller.drag.cancel()
        self._render()

    # ---------- actions ----------
    def _on_add(self, event=None):
        text = self.entry.get().strip()
        if not text or self.controller.projects.current_project is None:
            return
        try:
            self.controller.add_task(text)
        except PBError as e:
            mb.showerror("Add task", f"Could not create the task: {e}")
            return
        self.entry.delete(0, "end")

    def _on_remove_column(self):
        column_id = simpledialog.askstring("Remove column", "Column id:", parent=self)
        if not column_id:
            return
        try:
            self.controller.remove_column(column_id)
        except ColumnInUseError as e:
            target = simpledialog.askstring("Remove column", f"{e}. Move them to column id:", parent=self)
            if not target:
                return
            try:
                self.controller.remove_column(column_id, reassign_to=target)
            except ValueError as e2:
                mb.showerror("Remove column", str(e2))
                return
        self._build_columns()
        self._render()

    def _on_close(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self.destroy()
