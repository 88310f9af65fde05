from ninja_extra import NinjaExtraAPI

from src.api.exception_handler import attach_exception_handlers

from src.attestations.controllers import AttestationController
from src.diagnostics.controllers.attestation_health_controller import (
    AttestationHealthController,
)


api = NinjaExtraAPI(title="DID Attestation API", version="1.0.0", csrf=False)

# Register exception handlers in one place
attach_exception_handlers(api)

api.register_controllers(
    AttestationController,
    AttestationHealthController,
)
