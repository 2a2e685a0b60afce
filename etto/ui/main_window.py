from __future__ import annotations

import copy
import sys
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup, QBrush
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from etto import i18n
from etto.domain.catalog import FILTER_ALL, Catalog, CatalogError
from etto.domain.doctrine import SELECTION_MODES
from etto.domain.layout_store import MODE_PLATOONS, MODE_STORY, apply_result, storage_ids
from etto.domain.models import PLATOON_COUNT, PLATOON_SIZE, STORY_BACK_SLOTS, STORY_MAIN_SLOTS, UnitRecord
from etto.engine.team_optimizer import OptimizeRequest, OptimizeResult, optimize_teams, unit_tags
from etto.i18n import tr
from etto.services.app_persistence import AppPersistence
from etto.ui.async_worker import BackgroundTask, start_task
from etto.ui.theme import apply_dark_palette, element_color

ROSTER_COLUMNS = ("owned", "name", "title", "element", "rarity", "atk", "hp", "spd", "cost", "leader")

# slot key: ("main", i) | ("back", i) | ("platoon", p * PLATOON_SIZE + i)
SlotKey = Tuple[str, int]


class _SlotWidget(QWidget):
    """Unit combo + lock checkbox for one team slot."""

    def __init__(self, label: str, parent: QWidget | None = None):
        super().__init__(parent)
        lay = QHBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addWidget(QLabel(label))
        self.combo = QComboBox()
        self.combo.setMinimumWidth(220)
        lay.addWidget(self.combo, 1)
        self.chk_lock = QCheckBox(tr("opt.lock"))
        lay.addWidget(self.chk_lock)

    def set_units(self, units: List[UnitRecord], catalog: Catalog, current: str) -> None:
        self.combo.blockSignals(True)
        self.combo.clear()
        self.combo.addItem(tr("opt.empty_slot"), "")
        for u in units:
            self.combo.addItem(catalog.display_name(u.id), u.id)
        idx = self.combo.findData(current)
        self.combo.setCurrentIndex(idx if idx >= 0 else 0)
        self.combo.blockSignals(False)

    def unit_id(self) -> str:
        return str(self.combo.currentData() or "")


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(tr("main.title"))
        self.resize(1320, 860)

        self.persistence = AppPersistence()
        self.catalog = Catalog()
        self.owned = self.persistence.load_owned()
        self.layout_store = self.persistence.load_layout()
        self.doctrine = self.persistence.load_doctrine()
        self._optimize_task: Optional[BackgroundTask] = None
        self._slots: Dict[SlotKey, _SlotWidget] = {}

        try:
            self.catalog.load()
        except CatalogError as exc:
            QMessageBox.warning(self, tr("main.catalog_failed"), str(exc))

        self.tabs = QTabWidget()
        self.tabs.addTab(self._build_roster_tab(), tr("tab.roster"))
        self.tabs.addTab(self._build_optimizer_tab(), tr("tab.optimizer"))
        self.tabs.currentChanged.connect(self._on_tab_changed)
        self.setCentralWidget(self.tabs)
        self._build_menu()

        self._render_roster()
        self._refresh_slots()

    # ============================================================
    # Menu
    # ============================================================
    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu(tr("menu.language"))
        group = QActionGroup(self)
        for code, label in i18n.available_languages().items():
            act = QAction(label, self, checkable=True)
            act.setChecked(code == i18n.get_language())
            act.triggered.connect(lambda _checked=False, c=code: self._on_language(c))
            group.addAction(act)
            menu.addAction(act)

    def _on_language(self, code: str) -> None:
        i18n.set_language(code)
        self.statusBar().showMessage(tr("main.language_restart"), 6000)

    # ============================================================
    # Roster tab
    # ============================================================
    def _build_roster_tab(self) -> QWidget:
        w = QWidget()
        v = QVBoxLayout(w)

        bar = QHBoxLayout()
        self.edit_search = QLineEdit()
        self.edit_search.setPlaceholderText(tr("roster.search_placeholder"))
        self.edit_search.textChanged.connect(self._render_roster)
        bar.addWidget(self.edit_search, 1)

        self.combo_element = QComboBox()
        self.combo_element.addItem(tr("roster.all_elements"), FILTER_ALL)
        for e in self.catalog.elements():
            self.combo_element.addItem(e.capitalize(), e)
        self.combo_element.currentIndexChanged.connect(self._render_roster)
        bar.addWidget(self.combo_element)

        self.combo_rarity = QComboBox()
        self.combo_rarity.addItem(tr("roster.all_rarities"), FILTER_ALL)
        for r in self.catalog.rarities():
            self.combo_rarity.addItem(r, r)
        self.combo_rarity.currentIndexChanged.connect(self._render_roster)
        bar.addWidget(self.combo_rarity)
        v.addLayout(bar)

        self.table_roster = QTableWidget(0, len(ROSTER_COLUMNS))
        self.table_roster.setHorizontalHeaderLabels([tr(f"roster.col.{c}") for c in ROSTER_COLUMNS])
        self.table_roster.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        self.table_roster.horizontalHeader().setStretchLastSection(True)
        self.table_roster.setAlternatingRowColors(True)
        self.table_roster.verticalHeader().setVisible(False)
        self.table_roster.itemChanged.connect(self._on_roster_item_changed)
        v.addWidget(self.table_roster, 1)

        self.lbl_roster_status = QLabel("")
        v.addWidget(self.lbl_roster_status)
        return w

    def _render_roster(self) -> None:
        units = self.catalog.filter(
            self.edit_search.text(),
            str(self.combo_element.currentData() or FILTER_ALL),
            str(self.combo_rarity.currentData() or FILTER_ALL),
        )
        t = self.table_roster
        t.blockSignals(True)
        t.setRowCount(len(units))
        for row, u in enumerate(units):
            own = QTableWidgetItem()
            own.setFlags(Qt.ItemIsUserCheckable | Qt.ItemIsEnabled)
            own.setCheckState(Qt.Checked if self.owned.is_owned(u.id) else Qt.Unchecked)
            own.setData(Qt.UserRole, u.id)
            t.setItem(row, 0, own)

            ls = u.leader_skill
            values = [
                u.name or u.id,
                u.title,
                u.element.capitalize(),
                u.rarity,
                f"{u.stats.atk:.0f}",
                f"{u.stats.hp:.0f}",
                f"{u.stats.spd:.0f}",
                f"{u.stats.cost:.0f}",
                f"{ls.name}: {ls.description}" if ls else "",
            ]
            for col, text in enumerate(values, start=1):
                it = QTableWidgetItem(text)
                it.setFlags(Qt.ItemIsEnabled | Qt.ItemIsSelectable)
                if col == 1:
                    it.setToolTip(", ".join(unit_tags(u)))
                if col == 3:
                    it.setForeground(QBrush(element_color(u.element)))
                t.setItem(row, col, it)
        t.blockSignals(False)

        self.lbl_roster_status.setText(
            tr("roster.status", shown=len(units), total=len(self.catalog), owned=len(self.owned.owned))
        )

    def _on_roster_item_changed(self, item: QTableWidgetItem) -> None:
        if item.column() != 0:
            return
        uid = str(item.data(Qt.UserRole) or "")
        self.owned.set_owned(uid, item.checkState() == Qt.Checked)
        self.persistence.save_owned(self.owned)
        self.lbl_roster_status.setText(
            tr(
                "roster.status",
                shown=self.table_roster.rowCount(),
                total=len(self.catalog),
                owned=len(self.owned.owned),
            )
        )

    # ============================================================
    # Optimizer tab
    # ============================================================
    def _build_optimizer_tab(self) -> QWidget:
        w = QWidget()
        v = QVBoxLayout(w)

        bar = QHBoxLayout()
        bar.addWidget(QLabel(tr("opt.preset")))
        self.combo_preset = QComboBox()
        self.combo_preset.addItem(tr("preset.off"), "off")
        self.combo_preset.addItem(tr("preset.auto"), "auto")
        for key in self.doctrine.presets:
            self.combo_preset.addItem(tr(f"preset.{key}"), key)
        bar.addWidget(self.combo_preset)

        bar.addWidget(QLabel(tr("opt.elements")))
        self.combo_mono = QComboBox()
        for mode in SELECTION_MODES:
            self.combo_mono.addItem(tr(f"opt.mode.{mode}"), mode)
        idx = self.combo_mono.findData(self.doctrine.selection_mode)
        self.combo_mono.setCurrentIndex(idx if idx >= 0 else 0)
        bar.addWidget(self.combo_mono)

        bar.addWidget(QLabel(tr("opt.team_mode")))
        self.combo_team_mode = QComboBox()
        self.combo_team_mode.addItem(tr("opt.story"), MODE_STORY)
        self.combo_team_mode.addItem(tr("opt.platoons"), MODE_PLATOONS)
        self.combo_team_mode.setCurrentIndex(1 if self.layout_store.mode == MODE_PLATOONS else 0)
        self.combo_team_mode.currentIndexChanged.connect(self._on_team_mode_changed)
        bar.addWidget(self.combo_team_mode)
        bar.addStretch(1)

        self.btn_optimize = QPushButton(tr("btn.build_teams"))
        self.btn_optimize.setProperty("primary", True)
        self.btn_optimize.clicked.connect(self._on_optimize)
        bar.addWidget(self.btn_optimize)
        self.btn_clear = QPushButton(tr("btn.clear"))
        self.btn_clear.clicked.connect(self._on_clear)
        bar.addWidget(self.btn_clear)
        v.addLayout(bar)

        body = QHBoxLayout()
        self.stack_teams = QStackedWidget()
        self.stack_teams.addWidget(self._build_story_page())
        self.stack_teams.addWidget(self._build_platoon_page())
        self.stack_teams.setCurrentIndex(1 if self.layout_store.mode == MODE_PLATOONS else 0)
        body.addWidget(self.stack_teams, 3)

        box_storage = QGroupBox(tr("opt.storage"))
        sv = QVBoxLayout(box_storage)
        self.list_storage = QListWidget()
        sv.addWidget(self.list_storage)
        body.addWidget(box_storage, 1)
        v.addLayout(body, 1)
        return w

    def _build_story_page(self) -> QWidget:
        page = QWidget()
        v = QVBoxLayout(page)
        box_main = QGroupBox(tr("opt.story_main"))
        gm = QVBoxLayout(box_main)
        for i in range(STORY_MAIN_SLOTS):
            gm.addWidget(self._make_slot(("main", i), tr("opt.slot", n=i + 1)))
        v.addWidget(box_main)
        box_back = QGroupBox(tr("opt.story_back"))
        gb = QVBoxLayout(box_back)
        for i in range(STORY_BACK_SLOTS):
            gb.addWidget(self._make_slot(("back", i), tr("opt.slot", n=i + 1)))
        v.addWidget(box_back)
        v.addStretch(1)
        return page

    def _build_platoon_page(self) -> QWidget:
        inner = QWidget()
        grid = QGridLayout(inner)
        for p in range(PLATOON_COUNT):
            box = QGroupBox(tr("opt.platoon", n=p + 1))
            bv = QVBoxLayout(box)
            for i in range(PLATOON_SIZE):
                bv.addWidget(self._make_slot(("platoon", p * PLATOON_SIZE + i), tr("opt.slot", n=i + 1)))
            grid.addWidget(box, p // 2, p % 2)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(inner)
        return scroll

    def _make_slot(self, key: SlotKey, label: str) -> _SlotWidget:
        slot = _SlotWidget(label)
        slot.combo.currentIndexChanged.connect(lambda _i, k=key: self._on_slot_changed(k))
        slot.chk_lock.toggled.connect(lambda checked, k=key: self._on_lock_toggled(k, checked))
        self._slots[key] = slot
        return slot

    # -----------------------------
    # slot <-> store
    # -----------------------------
    def _slot_ref(self, key: SlotKey) -> Tuple[list, list, int]:
        kind, idx = key
        lay, lk = self.layout_store.layout, self.layout_store.locks
        if kind == "main":
            return lay.story_main, lk.story_main, idx
        if kind == "back":
            return lay.story_back, lk.story_back, idx
        p, i = divmod(idx, PLATOON_SIZE)
        return lay.platoons[p], lk.platoons[p], i

    def _on_slot_changed(self, key: SlotKey) -> None:
        ids, _locks, i = self._slot_ref(key)
        ids[i] = self._slots[key].unit_id()
        self.persistence.save_layout(self.layout_store)
        self._render_storage()

    def _on_lock_toggled(self, key: SlotKey, checked: bool) -> None:
        _ids, locks, i = self._slot_ref(key)
        locks[i] = bool(checked)
        self.persistence.save_layout(self.layout_store)

    def _owned_records(self) -> List[UnitRecord]:
        return self.catalog.units_for(self.owned.owned)

    def _refresh_slots(self) -> None:
        owned_units = sorted(self._owned_records(), key=lambda u: (u.name.lower(), u.id))
        for key, slot in self._slots.items():
            ids, locks, i = self._slot_ref(key)
            slot.set_units(owned_units, self.catalog, ids[i])
            slot.chk_lock.blockSignals(True)
            slot.chk_lock.setChecked(bool(locks[i]))
            slot.chk_lock.blockSignals(False)
        self._render_storage()

    def _render_storage(self) -> None:
        self.list_storage.clear()
        for uid in storage_ids(self.owned.owned, self.layout_store.layout):
            self.list_storage.addItem(self.catalog.display_name(uid))

    def _on_tab_changed(self, index: int) -> None:
        if index == 1:
            removed = self.layout_store.drop_unowned(self.owned.owned)
            if removed:
                self.persistence.save_layout(self.layout_store)
            self._refresh_slots()

    def _on_team_mode_changed(self) -> None:
        mode = str(self.combo_team_mode.currentData() or MODE_STORY)
        self.layout_store.set_mode(mode)
        self.stack_teams.setCurrentIndex(1 if mode == MODE_PLATOONS else 0)
        self.persistence.save_layout(self.layout_store)

    # -----------------------------
    # actions
    # -----------------------------
    def _on_clear(self) -> None:
        self.layout_store.clear(keep_locked=True)
        self.persistence.save_layout(self.layout_store)
        self._refresh_slots()
        self.statusBar().showMessage(tr("opt.cleared"), 4000)

    def _on_optimize(self) -> None:
        if self._optimize_task is not None:
            return
        preset = str(self.combo_preset.currentData() or "off")
        request = OptimizeRequest(
            preset_tag="" if preset in ("off", "auto") else preset,
            preset_mode="auto" if preset == "auto" else "off",
            doctrine_overrides={"mono_vs_rainbow": {"selection_mode": str(self.combo_mono.currentData() or "auto")}},
            current_layout=copy.deepcopy(self.layout_store.layout),
            slot_locks=copy.deepcopy(self.layout_store.locks),
        )
        self.btn_optimize.setEnabled(False)
        self.statusBar().showMessage(tr("opt.running"))
        self._optimize_task = start_task(
            optimize_teams,
            self._owned_records(),
            request,
            self.doctrine,
            on_finished=self._on_optimize_finished,
            on_failed=self._on_optimize_failed,
        )

    def _on_optimize_finished(self, result_obj: object) -> None:
        self._optimize_task = None
        self.btn_optimize.setEnabled(True)
        if not isinstance(result_obj, OptimizeResult):
            return
        apply_result(self.layout_store, result_obj)
        self.persistence.save_layout(self.layout_store)
        self._refresh_slots()
        self.statusBar().showMessage(result_obj.message, 8000)

    def _on_optimize_failed(self, detail: str) -> None:
        self._optimize_task = None
        self.btn_optimize.setEnabled(True)
        QMessageBox.critical(self, tr("opt.failed_title"), tr("opt.failed", detail=detail))


def run_app():
    app = QApplication(sys.argv)
    apply_dark_palette(app)
    i18n.init(AppPersistence().data_dir)
    w = MainWindow()
    w.show()
    sys.exit(app.exec())
