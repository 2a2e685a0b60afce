"""English translations."""

STRINGS: dict[str, str] = {
    # -- Main Window ---------------------------------------------
    "main.title": "Evertale Team Optimizer",
    "main.catalog_failed": "Could not load the unit catalog",
    "main.language_restart": "Language changed. Restart to apply everywhere.",
    "menu.language": "Language",

    # -- Tabs ----------------------------------------------------
    "tab.roster": "Roster",
    "tab.optimizer": "Optimizer",

    # -- Roster --------------------------------------------------
    "roster.search_placeholder": "Search name, title, element, rarity...",
    "roster.all_elements": "All elements",
    "roster.all_rarities": "All rarities",
    "roster.status": "{shown} of {total} units shown, {owned} owned",
    "roster.col.owned": "Owned",
    "roster.col.name": "Name",
    "roster.col.title": "Title",
    "roster.col.element": "Element",
    "roster.col.rarity": "Rarity",
    "roster.col.atk": "ATK",
    "roster.col.hp": "HP",
    "roster.col.spd": "SPD",
    "roster.col.cost": "COST",
    "roster.col.leader": "Leader Skill",

    # -- Presets -------------------------------------------------
    "preset.off": "No preset",
    "preset.auto": "Auto",
    "preset.burn": "Burn",
    "preset.poison": "Poison",
    "preset.sleep": "Sleep",
    "preset.stun": "Stun",
    "preset.heal": "Heal / Sustain",
    "preset.turn": "Turn control",
    "preset.cleanse": "Cleanse",
    "preset.hp_buff": "HP buff",
    "preset.atk_buff": "ATK buff",

    # -- Optimizer -----------------------------------------------
    "opt.preset": "Preset:",
    "opt.elements": "Elements:",
    "opt.mode.auto": "Auto (mono or rainbow)",
    "opt.mode.force_mono": "Force mono",
    "opt.mode.force_rainbow": "Force rainbow",
    "opt.team_mode": "Team:",
    "opt.story": "Story",
    "opt.platoons": "Platoons",
    "opt.story_main": "Story - main (5)",
    "opt.story_back": "Story - back (3)",
    "opt.platoon": "Platoon {n}",
    "opt.slot": "#{n}",
    "opt.lock": "Lock",
    "opt.empty_slot": "(empty)",
    "opt.storage": "Storage",
    "opt.running": "Building teams...",
    "opt.cleared": "Unlocked slots cleared.",
    "opt.no_units": "No owned units yet. Mark units as owned in the roster first.",
    "opt.done": "Teams built: {placed} of {total} owned units placed (preset: {preset}).",
    "opt.failed_title": "Optimization failed",
    "opt.failed": "The optimizer stopped with an error:\n{detail}",

    # -- Buttons -------------------------------------------------
    "btn.build_teams": "Build best teams",
    "btn.clear": "Clear",
}
