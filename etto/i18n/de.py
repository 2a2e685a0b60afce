"""Deutsche Übersetzungen."""

STRINGS: dict[str, str] = {
    # -- Main Window ---------------------------------------------
    "main.title": "Evertale Team Optimizer",
    "main.catalog_failed": "Einheitenkatalog konnte nicht geladen werden",
    "main.language_restart": "Sprache geändert. Für alle Fenster bitte neu starten.",
    "menu.language": "Sprache",

    # -- Tabs ----------------------------------------------------
    "tab.roster": "Einheiten",
    "tab.optimizer": "Optimierer",

    # -- Roster --------------------------------------------------
    "roster.search_placeholder": "Name, Titel, Element, Seltenheit suchen...",
    "roster.all_elements": "Alle Elemente",
    "roster.all_rarities": "Alle Seltenheiten",
    "roster.status": "{shown} von {total} Einheiten angezeigt, {owned} im Besitz",
    "roster.col.owned": "Besitz",
    "roster.col.name": "Name",
    "roster.col.title": "Titel",
    "roster.col.element": "Element",
    "roster.col.rarity": "Seltenheit",
    "roster.col.atk": "ANG",
    "roster.col.hp": "LP",
    "roster.col.spd": "TEMPO",
    "roster.col.cost": "KOSTEN",
    "roster.col.leader": "Anführerfähigkeit",

    # -- Presets -------------------------------------------------
    "preset.off": "Kein Preset",
    "preset.auto": "Automatisch",
    "preset.burn": "Brand",
    "preset.poison": "Gift",
    "preset.sleep": "Schlaf",
    "preset.stun": "Betäubung",
    "preset.heal": "Heilung / Ausdauer",
    "preset.turn": "Zugkontrolle",
    "preset.cleanse": "Reinigung",
    "preset.hp_buff": "LP-Buff",
    "preset.atk_buff": "ANG-Buff",

    # -- Optimizer -----------------------------------------------
    "opt.preset": "Preset:",
    "opt.elements": "Elemente:",
    "opt.mode.auto": "Automatisch (Mono oder Regenbogen)",
    "opt.mode.force_mono": "Nur Mono",
    "opt.mode.force_rainbow": "Nur Regenbogen",
    "opt.team_mode": "Team:",
    "opt.story": "Story",
    "opt.platoons": "Züge",
    "opt.story_main": "Story - Hauptreihe (5)",
    "opt.story_back": "Story - Reserve (3)",
    "opt.platoon": "Zug {n}",
    "opt.slot": "#{n}",
    "opt.lock": "Sperren",
    "opt.empty_slot": "(leer)",
    "opt.storage": "Lager",
    "opt.running": "Teams werden gebaut...",
    "opt.cleared": "Ungesperrte Plätze geleert.",
    "opt.no_units": "Noch keine Einheiten im Besitz. Bitte zuerst im Einheiten-Tab markieren.",
    "opt.done": "Teams gebaut: {placed} von {total} Einheiten platziert (Preset: {preset}).",
    "opt.failed_title": "Optimierung fehlgeschlagen",
    "opt.failed": "Der Optimierer wurde mit einem Fehler beendet:\n{detail}",

    # -- Buttons -------------------------------------------------
    "btn.build_teams": "Beste Teams bauen",
    "btn.clear": "Leeren",
}
