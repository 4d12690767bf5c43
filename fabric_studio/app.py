from typing import Optional

import customtkinter as ctk
from tkinterdnd2 import TkinterDnD

from fabric_studio.config import AppConfig
from fabric_studio.controllers.app_controller import AppController
from fabric_studio.ui.image_viewer import ImageViewer
from fabric_studio.ui.sidebar import Sidebar
from fabric_studio.ui.bottom_bar import BottomBar


class FabricStudioApp(ctk.CTk, TkinterDnD.DnDWrapper):
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()
        # load tkdnd into this interpreter so widgets accept dropped files
        self.TkdndVersion = TkinterDnD._require(self)

        config = config or AppConfig()
        ctk.set_appearance_mode(config.appearance_mode)
        ctk.set_default_color_theme("blue")

        self.title("FabricFusion Studio")
        self.minsize(1100, 700)

        # root layout: left viewer, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=1, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        self._controller = AppController(
            viewer=self._viewer,
            sidebar=self._sidebar,
            bottom=self._bottom,
            window=self,
            config=config,
        )
        self._controller.bind_events()
