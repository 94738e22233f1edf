"""
Questionnaires generated from the preset store.

These let a front end drive preset loading, saving and management
through the same wizard engine as any other questionnaire.
"""

from polyform.core.builders import Conditions, FormBuilder, Questions, Rules
from polyform.core.presets import Preset, PresetStore
from polyform.core.schema import Questionnaire, SelectOption

START_FRESH = "none"

LOAD_FORM_ID = "load-preset"
SAVE_PROMPT_FORM_ID = "save-preset-prompt"
MANAGEMENT_FORM_ID = "manage-presets"


def _created_label(preset: Preset) -> str:
    return f"Created {preset.created_at.date().isoformat()}"


async def create_preset_load_form(store: PresetStore, questionnaire_id: str) -> Questionnaire:
    """Build a form for picking a preset of ``questionnaire_id`` to load.

    The first option, ``START_FRESH``, means no preset.
    """
    presets = await store.list_for_questionnaire(questionnaire_id)

    if not presets:
        return (
            FormBuilder(LOAD_FORM_ID, "Load Preset")
            .description(
                "No presets available for this form. You can save your answers "
                "as a preset after completing the form."
            )
            .settings(allow_back=False, show_progress=False, submit_label="Continue")
            .group("preset-selection", "Available Presets")
            .question(Questions.toggle(
                "noPresets",
                "No presets available for this form",
                description="You can save your answers as a preset after completing the form.",
                required=True,
                default=True,
            ))
            .build()
        )

    options = [
        SelectOption(label="Start Fresh (No Preset)", value=START_FRESH, description="Begin with an empty form")
    ]
    options.extend(
        SelectOption(label=p.name, value=p.id, description=p.description or _created_label(p))
        for p in presets
    )

    return (
        FormBuilder(LOAD_FORM_ID, "Load Preset")
        .description("Choose a preset to load your previous answers, or start fresh")
        .settings(allow_back=False, show_progress=False, submit_label="Load Selected")
        .group("preset-selection", "Available Presets")
        .question(Questions.select(
            "selectedPreset",
            "Choose a preset to load:",
            options,
            required=True,
            default=START_FRESH,
        ))
        .build()
    )


def create_save_preset_prompt_form() -> Questionnaire:
    """Build the yes/no form asking whether to save the answers as a preset."""
    return (
        FormBuilder(SAVE_PROMPT_FORM_ID, "Save as Preset?")
        .description("Would you like to save your answers as a preset for future use?")
        .settings(allow_back=False, show_progress=False, submit_label="Continue", cancel_label="Skip")
        .group("save-prompt")
        .question(Questions.toggle(
            "shouldSave",
            "Save these answers as a preset",
            description="You can reuse these settings for future projects",
            required=True,
            default=False,
        ))
        .build()
    )


async def create_preset_management_form(
    store: PresetStore,
    questionnaire_id: str | None = None,
) -> Questionnaire:
    """Build a form for viewing, deleting, exporting or clearing presets.

    Args:
        store: The preset store to list.
        questionnaire_id: Restrict the listing to one questionnaire.
            When None, every preset is listed with its questionnaire ID.
    """
    if questionnaire_id is not None:
        presets = await store.list_for_questionnaire(questionnaire_id)
    else:
        presets = await store.list_all()

    builder = (
        FormBuilder(MANAGEMENT_FORM_ID, "Manage Presets")
        .settings(allow_back=True, show_progress=False, submit_label="Apply Action", cancel_label="Done")
    )

    if not presets:
        return (
            builder
            .description("No presets found. Complete some forms and save presets to see them here.")
            .group("no-presets", "No Presets Available")
            .question(Questions.toggle(
                "info",
                "No presets found",
                description="Complete some forms and save your answers as presets to manage them here.",
                required=True,
                default=True,
            ))
            .build()
        )

    preset_options = [
        SelectOption(
            label=p.name if questionnaire_id is not None else f"{p.name} ({p.questionnaire_id})",
            value=p.id,
            description=f"{p.description or 'No description'} - {_created_label(p)}",
        )
        for p in presets
    ]
    actions = [
        SelectOption(label="View Preset Details", value="view", description="See details about a preset"),
        SelectOption(label="Delete Preset", value="delete", description="Permanently remove a preset"),
        SelectOption(label="Export All Presets", value="export", description="Export presets as JSON"),
        SelectOption(label="Clear All Presets", value="clear", description="Delete all presets (cannot be undone)"),
    ]

    return (
        builder
        .description("View, export, or delete your saved presets")
        .group("preset-action", "What would you like to do?")
        .question(Questions.select("action", "Choose an action:", actions, required=True))
        .question(Questions.select(
            "selectedPreset",
            "Select a preset:",
            preset_options,
            required=True,
            show_if=[Conditions.is_in("action", ["view", "delete"])],
        ))
        .question(Questions.toggle(
            "confirmDelete",
            "Are you sure you want to delete this preset?",
            description="This action cannot be undone.",
            required=True,
            default=False,
            show_if=[Conditions.equals("action", "delete")],
        ))
        .question(Questions.text(
            "confirmClear",
            'Type "DELETE ALL" to confirm clearing all presets:',
            description="This will permanently delete all presets and cannot be undone.",
            required=True,
            show_if=[Conditions.equals("action", "clear")],
            validation=[Rules.pattern(r"^DELETE ALL$", 'You must type "DELETE ALL" exactly to confirm')],
        ))
        .build()
    )
