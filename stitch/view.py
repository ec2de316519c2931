# view.py

import logging
import queue
import tkinter as tk
from tkinter import colorchooser, filedialog, messagebox, ttk
from typing import Dict, List, Optional

from PIL import Image, ImageTk

from stitch.compositor import export, render_model
from stitch.constants import (EXPORT_FILENAME, GRID_LABELS, LAYOUT_MODES, MAX_ZOOM, MIN_ZOOM, PANEL_WIDTH,
                              SLOT_OPTIONS, STACK_DIRECTIONS, TOOLBAR_HEIGHT, TRIO_PATTERN_NAMES, ZOOM_STEP,
                              presets_for_mode)
from stitch.controller import EditorController
from stitch.hit_test import DisplayMapping
from stitch.image_cache import ImageCache, read_gallery_image
from stitch.layout import ConfigurationError
from stitch.model import ImageItem, StitchModel

logger = logging.getLogger(__name__)

POLL_MS = 50


class StitchView(tk.Frame):
    """
    Tk host for the composition engine. Renders the full-resolution canvas,
    shows it scaled to fit the widget and forwards pointer events (in widget
    pixels) to the controller together with the current display mapping.
    """

    def __init__(self, master, controller: EditorController, images: ImageCache):
        super().__init__(master)
        self.controller = controller
        self.model: StitchModel = controller.model
        self.images = images
        self.pack(fill=tk.BOTH, expand=True)

        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._display = DisplayMapping.identity(self.model.config.width, self.model.config.height)
        self._render_job = None
        self._resolved: "queue.Queue[str]" = queue.Queue()
        self._zoom_vars: Dict[int, tk.DoubleVar] = {}
        self._shown_key = None

        self.mode_var = tk.StringVar(value=self.model.layout.mode)
        self.direction_var = tk.StringVar(value=self.model.layout.stack_direction)
        self.pattern_var = tk.StringVar(value=self.model.layout.trio_pattern)
        self.slots_var = tk.StringVar(value=str(self.model.slot_count))
        self.width_var = tk.IntVar(value=self.model.config.width)
        self.height_var = tk.IntVar(value=self.model.config.height)
        self.separator_var = tk.IntVar(value=self.model.config.separator_thickness)
        self.border_var = tk.BooleanVar(value=self.model.config.border.enabled)
        self.border_thickness_var = tk.IntVar(value=self.model.config.border.thickness)

        self._build_ui()
        self._bind_events()

        self.model.add_observer(self._on_model_changed)
        self.bind("<Destroy>", self._on_destroy)
        # decode listeners run on worker threads; hand results to the Tk loop through a queue
        self.images.add_listener(lambda ref, entry: self._resolved.put(ref))
        self.after(POLL_MS, self._poll_decoded)

        master.title("Stitch")
        self._refresh_panels()
        self.request_render()

    # --- Layout -------------------------------------------------------------

    def _build_ui(self):
        self.toolbar = tk.Frame(self, height=TOOLBAR_HEIGHT, bd=1, relief=tk.RAISED)
        self.toolbar.pack(side=tk.TOP, fill=tk.X)

        for mode in LAYOUT_MODES:
            ttk.Radiobutton(self.toolbar, text=mode.title(), value=mode, variable=self.mode_var,
                            command=self._on_mode_selected).pack(side=tk.LEFT, padx=2)

        self.direction_box = ttk.Combobox(self.toolbar, textvariable=self.direction_var, values=STACK_DIRECTIONS,
                                          state='readonly', width=10)
        self.direction_box.pack(side=tk.LEFT, padx=4)
        self.pattern_box = ttk.Combobox(self.toolbar, textvariable=self.pattern_var, values=TRIO_PATTERN_NAMES,
                                        state='readonly', width=8)
        self.pattern_box.pack(side=tk.LEFT, padx=4)
        self.slots_box = ttk.Combobox(self.toolbar, textvariable=self.slots_var, state='readonly', width=6)
        self.slots_box.pack(side=tk.LEFT, padx=4)

        self.presets_frame = ttk.Frame(self.toolbar)
        self.presets_frame.pack(side=tk.LEFT, padx=8)

        tk.Button(self.toolbar, text="Export", command=self.export_dialog).pack(side=tk.RIGHT, padx=2)
        tk.Button(self.toolbar, text="Reset Canvas", command=self.controller.reset_canvas).pack(side=tk.RIGHT, padx=2)
        tk.Button(self.toolbar, text="Add Images", command=self.add_images_dialog).pack(side=tk.RIGHT, padx=2)

        body = tk.Frame(self)
        body.pack(fill=tk.BOTH, expand=True)

        self.panel = tk.Frame(body, width=PANEL_WIDTH)
        self.panel.pack(side=tk.RIGHT, fill=tk.Y)
        self.panel.pack_propagate(False)

        ttk.Label(self.panel, text="Gallery (select, then click a slot)").pack(anchor='w', padx=4, pady=(4, 0))
        self.gallery_list = tk.Listbox(self.panel, exportselection=False, height=8)
        self.gallery_list.pack(fill=tk.X, padx=4)
        tk.Button(self.panel, text="Clear Gallery", command=self.model.clear_gallery).pack(anchor='w', padx=4, pady=2)

        settings = ttk.LabelFrame(self.panel, text="Canvas")
        settings.pack(fill=tk.X, padx=4, pady=4)
        self._numeric_field(settings, "Width", self.width_var, 0, 0, 1, 16384,
                            lambda w: self.model.set_canvas_size(w, self.model.config.height))
        self._numeric_field(settings, "Height", self.height_var, 0, 2, 1, 16384,
                            lambda h: self.model.set_canvas_size(self.model.config.width, h))
        self._numeric_field(settings, "Spacing", self.separator_var, 1, 0, 0, 200, self.model.set_separator_thickness)
        tk.Button(settings, text="Background…", command=self._choose_background).grid(row=1, column=2, columnspan=2,
                                                                                     sticky='w')
        ttk.Checkbutton(settings, text="Border", variable=self.border_var,
                        command=self._on_border_toggled).grid(row=2, column=0, columnspan=2, sticky='w')
        tk.Button(settings, text="Border color…", command=self._choose_border_color).grid(row=2, column=2, columnspan=2,
                                                                                         sticky='w')
        self._numeric_field(settings, "Thickness", self.border_thickness_var, 3, 0, 0, 200,
                            lambda t: self.model.set_border(thickness=t))

        self.zoom_frame = ttk.LabelFrame(self.panel, text="Zoom")
        self.zoom_frame.pack(fill=tk.BOTH, expand=True, padx=4, pady=4)

        self.canvas = tk.Canvas(body, bg='#18181b', highlightthickness=0)
        self.canvas.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

    def _bind_events(self):
        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<B1-Motion>", self._on_drag)
        self.canvas.bind("<ButtonRelease-1>", lambda e: self.controller.on_release())
        self.canvas.bind("<Leave>", lambda e: self.controller.on_leave())
        self.canvas.bind("<Configure>", lambda e: self.request_render())

        self.direction_box.bind("<<ComboboxSelected>>", lambda e: self._apply(
            self.model.set_stack_direction, self.direction_var.get()))
        self.pattern_box.bind("<<ComboboxSelected>>", lambda e: self._apply(
            self.model.set_trio_pattern, self.pattern_var.get()))
        self.slots_box.bind("<<ComboboxSelected>>", self._on_slots_selected)
        self.gallery_list.bind("<<ListboxSelect>>", self._on_gallery_select)

        self.master.bind_all("<Control-e>", lambda e: self.export_dialog())

    # --- Model → view -------------------------------------------------------

    def _on_model_changed(self, model: StitchModel):
        # pans and zoom commits leave the panels as they are
        if self._panel_key() != self._shown_key:
            self._refresh_panels()
        self.request_render()

    def _panel_key(self):
        config = self.model.config
        return (self.model.layout.mode, self.model.layout.stack_direction, self.model.layout.trio_pattern,
                tuple(item.id for item in self.model.items), tuple(type(item) for item in self.model.items),
                len(self.model.gallery), self.model.selected_gallery_index,
                config.width, config.height, config.separator_thickness, config.border.enabled, config.border.thickness)

    def _on_destroy(self, event):
        if event.widget is self:
            self.model.remove_observer(self._on_model_changed)

    def _poll_decoded(self):
        resolved = False
        while True:
            try:
                self._resolved.get_nowait()
            except queue.Empty:
                break
            resolved = True
        if resolved:
            self.request_render()
        self.after(POLL_MS, self._poll_decoded)

    def _refresh_panels(self):
        self._shown_key = self._panel_key()
        config = self.model.config
        self.width_var.set(config.width)
        self.height_var.set(config.height)
        self.separator_var.set(config.separator_thickness)
        self.border_var.set(config.border.enabled)
        self.border_thickness_var.set(config.border.thickness)
        mode = self.model.layout.mode
        self.mode_var.set(mode)
        self.direction_box.configure(state='readonly' if mode == 'stack' else 'disabled')
        self.pattern_box.configure(state='readonly' if mode == 'trio' else 'disabled')
        options = SLOT_OPTIONS[mode]
        self.slots_box.configure(values=[GRID_LABELS.get(n, str(n)) if mode == 'grid' else str(n) for n in options])
        self.slots_var.set(GRID_LABELS.get(self.model.slot_count, str(self.model.slot_count))
                           if mode == 'grid' else str(self.model.slot_count))

        for child in self.presets_frame.winfo_children():
            child.destroy()
        for name, (w, h) in presets_for_mode(mode).items():
            tk.Button(self.presets_frame, text=name,
                      command=lambda w=w, h=h: self._apply(self.model.set_canvas_size, w, h)).pack(side=tk.LEFT)

        self.gallery_list.delete(0, tk.END)
        for image in self.model.gallery:
            self.gallery_list.insert(tk.END, f"{image.name} ({image.width}x{image.height})")
        if self.model.selected_gallery_index is not None:
            self.gallery_list.selection_set(self.model.selected_gallery_index)

        self._rebuild_zoom_sliders()

    def _rebuild_zoom_sliders(self):
        for child in self.zoom_frame.winfo_children():
            child.destroy()
        self._zoom_vars = {}
        for index, item in enumerate(self.model.items):
            if not isinstance(item, ImageItem):
                continue
            var = tk.DoubleVar(value=item.zoom)
            self._zoom_vars[index] = var
            ttk.Label(self.zoom_frame, text=f"Image {index + 1} Zoom").pack(anchor='w')
            scale = tk.Scale(self.zoom_frame, from_=MIN_ZOOM, to=MAX_ZOOM, resolution=ZOOM_STEP,
                             orient=tk.HORIZONTAL, variable=var, showvalue=True)
            scale.pack(fill=tk.X)
            # commit on release, not on every intermediate value
            scale.bind("<ButtonRelease-1>", lambda e, i=index: self.controller.set_zoom(i, self._zoom_vars[i].get()))

    # --- Rendering ----------------------------------------------------------

    def request_render(self):
        if self._render_job is None:
            self._render_job = self.after_idle(self._render)

    def _render(self):
        self._render_job = None
        try:
            image = render_model(self.model, self.images)
        except ConfigurationError as e:
            logger.warning("StitchView._render: %s", e)
            self.canvas.delete("all")
            self.canvas.create_text(10, 10, anchor='nw', fill='#f87171', text=str(e))
            return

        view_w = max(1, self.canvas.winfo_width())
        view_h = max(1, self.canvas.winfo_height())
        scale = min(view_w / image.width, view_h / image.height)
        shown_w = max(1, int(image.width * scale))
        shown_h = max(1, int(image.height * scale))
        origin_x = (view_w - shown_w) // 2
        origin_y = (view_h - shown_h) // 2
        self._display = DisplayMapping(image.width, image.height, shown_w, shown_h, origin_x, origin_y)

        self._tk_image = ImageTk.PhotoImage(image.resize((shown_w, shown_h), Image.Resampling.BILINEAR))
        self.canvas.delete("all")
        self.canvas.create_image(origin_x, origin_y, anchor='nw', image=self._tk_image)

    # --- Events -------------------------------------------------------------

    def _on_press(self, event):
        if not self._display.contains(event.x, event.y):
            return
        result = self.controller.on_press(event.x, event.y, self._display)
        if result == 'drag':
            self.canvas.configure(cursor='fleur')

    def _on_drag(self, event):
        if not self._display.contains(event.x, event.y):
            self.controller.on_leave()
            self.canvas.configure(cursor='')
            return
        self.controller.on_drag(event.x, event.y, self._display)

    def _on_mode_selected(self):
        self._apply(self.controller.set_mode, self.mode_var.get())

    def _on_slots_selected(self, event=None):
        label = self.slots_var.get()
        labels = {v: k for k, v in GRID_LABELS.items()}
        count = labels.get(label) if label in labels else int(label)
        self._apply(self.controller.set_slot_count, count)

    def _on_gallery_select(self, event=None):
        selection = self.gallery_list.curselection()
        self.model.select_gallery_image(selection[0] if selection else None)

    def _numeric_field(self, parent, label: str, var: tk.IntVar, row: int, column: int, low: int, high: int, commit):
        """Label plus spinbox; the value is committed on Return, focus-out or the arrows."""
        ttk.Label(parent, text=label).grid(row=row, column=column, sticky='w')
        box = ttk.Spinbox(parent, from_=low, to=high, textvariable=var, width=6,
                          command=lambda: self._commit_number(var, commit))
        box.grid(row=row, column=column + 1, sticky='w')
        box.bind("<Return>", lambda e: self._commit_number(var, commit))
        box.bind("<FocusOut>", lambda e: self._commit_number(var, commit))

    def _commit_number(self, var: tk.IntVar, commit):
        try:
            value = int(var.get())
        except tk.TclError:
            # not a number: show the current settings again
            self._refresh_panels()
            return
        self._apply(commit, value)

    def _on_border_toggled(self):
        self.model.set_border(enabled=self.border_var.get())

    def _choose_background(self):
        color = colorchooser.askcolor(color=self.model.config.background_color, title="Background color")[1]
        if color:
            self.model.set_background_color(color)

    def _choose_border_color(self):
        color = colorchooser.askcolor(color=self.model.config.border.color, title="Border color")[1]
        if color:
            self.model.set_border(color=color)

    def _apply(self, action, *args):
        try:
            action(*args)
        except ConfigurationError as e:
            messagebox.showerror("Invalid layout", str(e))
            self._refresh_panels()

    # --- Files --------------------------------------------------------------

    def add_images_dialog(self):
        paths = filedialog.askopenfilenames(
            title="Add images",
            filetypes=[("Images", "*.png *.jpg *.jpeg *.gif *.bmp *.webp *.tif *.tiff"), ("All files", "*.*")])
        loaded = []
        failed: List[str] = []
        for path in paths:
            try:
                loaded.append(read_gallery_image(path))
            except OSError as e:
                logger.warning("StitchView.add_images_dialog: %s: %s", path, e)
                failed.append(path)
        self.controller.add_images(loaded)
        if failed:
            messagebox.showwarning("Some images could not be read", "\n".join(failed))

    def export_dialog(self):
        path = filedialog.asksaveasfilename(
            title="Export", initialfile=EXPORT_FILENAME, defaultextension=".png",
            filetypes=[("PNG image", "*.png"), ("PDF document", "*.pdf")])
        if not path:
            return
        try:
            export(self.model, path, self.images)
        except (ConfigurationError, ValueError, OSError) as e:
            messagebox.showerror("Export failed", str(e))
            return
        messagebox.showinfo("Export", f"Saved {path}")


def run_editor(controller: EditorController, images: ImageCache):
    root = tk.Tk()
    root.geometry("1280x800")
    StitchView(root, controller, images)
    root.mainloop()
