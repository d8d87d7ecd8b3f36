"""
Board column widget for Tkinter
-------------------------------
One column of the Kanban board: a colored header with the task count, an
optional WIP warning, and its task cards inside a scrollable Canvas.

Integration notes:
- The widget is view-only state. Drag gestures are reported through the
  callbacks passed in the constructor; the controller owns the tasks.
- Every card and column carries a `drop_id` attribute (task id or column id)
  so the window can resolve the widget under the pointer to a drop target.
"""
from __future__ import annotations
from typing import Callable, List, Optional, Tuple
import tkinter as tk
from tkinter import ttk

from devtasker.core.models import Task
from devtasker.gui.styles import WIP_WARNING_COLOR, card_tags, ideal_text_color, wip_warning

DragCallback = Callable[[tk.Event], None]


class TaskCard(ttk.Frame):
    """A single task card with title, short id and colored tags."""
    def __init__(
        self,
        master,
        task: Task,
        on_press: Optional[Callable[[str], None]] = None,
        on_motion: Optional[DragCallback] = None,
        on_release: Optional[DragCallback] = None,
        wrap: int = 240,
    ):
        super().__init__(master, padding=(6, 4), relief="raised", borderwidth=1)
        self.drop_id = task.id
        self._on_press = on_press

        self.columnconfigure(0, weight=1)
        self.lbl = ttk.Label(self, text=task.title, wraplength=wrap, anchor="w", justify="left")
        self.lbl.grid(row=0, column=0, sticky="we")
        ttk.Label(self, text=f"#{task.id[-6:]}", foreground="#6B7280").grid(row=0, column=1, sticky="ne")

        self.tag_container = ttk.Frame(self)
        self.tag_container.grid(row=1, column=0, columnspan=2, sticky="w", pady=(2, 0))
        self._render_tags(card_tags(task))

        # the whole card is draggable, children included
        for widget in (self, self.lbl, self.tag_container, *self.tag_container.winfo_children()):
            widget.bind("<ButtonPress-1>", self._press)
            if on_motion:
                widget.bind("<B1-Motion>", on_motion)
            if on_release:
                widget.bind("<ButtonRelease-1>", on_release)

    def _render_tags(self, tags: List[Tuple[str, str]]):
        for label, color in tags:
            # tk.Label allows a background color without ttk style plumbing
            tag = tk.Label(
                self.tag_container,
                text=label,
                bg=color,
                fg=ideal_text_color(color),
                padx=4,
                pady=1,
                borderwidth=0,
                relief="flat",
            )
            tag.pack(side="left", padx=(0, 4))

    def _press(self, _event):
        if self._on_press:
            self._on_press(self.drop_id)


class ColumnView(ttk.Frame):
    """Canvas + interior Frame pattern holding the cards of one column."""
    def __init__(
        self,
        master,
        column_id: str,
        title: str,
        color: str,
        on_press: Optional[Callable[[str], None]] = None,
        on_motion: Optional[DragCallback] = None,
        on_release: Optional[DragCallback] = None,
        width: int = 280,
        **kwargs,
    ):
        super().__init__(master, padding=6, **kwargs)
        self.drop_id = column_id
        self._on_press = on_press
        self._on_motion = on_motion
        self._on_release = on_release
        self._width = width

        header = ttk.Frame(self)
        header.pack(fill="x")
        header.drop_id = column_id
        tk.Label(header, text="  ", bg=color).pack(side="left", padx=(0, 6))
        ttk.Label(header, text=title, font=("TkDefaultFont", 10, "bold")).pack(side="left")
        self.count_var = tk.StringVar(value="0")
        ttk.Label(header, textvariable=self.count_var).pack(side="left", padx=(6, 0))

        self.warning = tk.Label(self, text="", fg=WIP_WARNING_COLOR, anchor="w")

        # --- layout ---
        body = ttk.Frame(self)
        body.pack(fill="both", expand=True, pady=(6, 0))
        body.drop_id = column_id
        self.canvas = tk.Canvas(body, highlightthickness=0, width=width)
        self.canvas.drop_id = column_id
        self.vbar = ttk.Scrollbar(body, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)
        self.canvas.pack(side="left", fill="both", expand=True)
        self.vbar.pack(side="right", fill="y")

        self.interior = ttk.Frame(self.canvas)
        self.interior.drop_id = column_id
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")
        self.interior.bind("<Configure>", self._on_interior_configure)
        self.canvas.bind("<Configure>", self._on_canvas_configure)

    # --- Public API ---
    def set_tasks(self, tasks: List[Task], over_wip_limit: bool = False, wip_limit: Optional[int] = None,
                  total: Optional[int] = None):
        for child in self.interior.winfo_children():
            child.destroy()
        for i, task in enumerate(tasks):
            card = TaskCard(
                self.interior,
                task,
                on_press=self._on_press,
                on_motion=self._on_motion,
                on_release=self._on_release,
                wrap=self._width - 60,
            )
            card.grid(row=i, column=0, sticky="we", pady=(0, 6))
        self.interior.columnconfigure(0, weight=1)
        total = len(tasks) if total is None else total
        self.count_var.set(str(len(tasks)) if total == len(tasks) else f"{len(tasks)}/{total}")
        if over_wip_limit:
            self.warning.configure(text=wip_warning(total, wip_limit))
            self.warning.pack(fill="x", before=self.canvas.master)
        else:
            self.warning.pack_forget()
        self._update_scrollregion()

    # --- Internals ---
    def _update_scrollregion(self):
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_interior_configure(self, _):
        self._update_scrollregion()

    def _on_canvas_configure(self, event):
        # Keep interior width synced to canvas for wrapping
        self.canvas.itemconfigure(self._win_id, width=event.width)
