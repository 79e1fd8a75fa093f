from pawbook.wizard.state_machine import (
    BookingWizard,
    InvalidTransitionError,
    WizardState,
    WizardTrigger,
)

__all__ = ["BookingWizard", "InvalidTransitionError", "WizardState", "WizardTrigger"]
