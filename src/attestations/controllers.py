import logging
from time import perf_counter

from ninja_extra import api_controller, route

from src.attestations import presenters, services
from src.attestations.attestation_schemas import unique_schema_uids
from src.attestations.config import load_attestation_config
from src.attestations.schemas import DiscoverWalletIn, TransferInstructionsIn, VerifyAndAttestIn, VerifyAndAttestOut
from src.attestations.verification.transfer import SHARED_CONTROL
from src.core.apis import BaseAPIController
from src.core.exceptions import AttestationWriteError, VerificationFailedError
from src.dids.utils.validators import (
    validate_connected_address,
    validate_did_field,
    validate_required_schemas,
    validate_tx_hash,
)

logger = logging.getLogger(__name__)


@api_controller("", tags=["Attestations"], auth=None)
class AttestationController(BaseAPIController):
    @route.post("/verify-and-attest", response={200: VerifyAndAttestOut})
    def verify_and_attest(self, request, payload: VerifyAndAttestIn):
        """
        Prove control of a did:web or did:pkh and record it on the resolver.
        Already-attested DIDs return immediately without verification or writes.
        """
        t0 = perf_counter()
        did = validate_did_field(payload.did)
        address = validate_connected_address(payload.connectedAddress)
        tx_hash = validate_tx_hash(payload.txHash)
        services.route_did(did)

        config = load_attestation_config()
        schemas = unique_schema_uids(validate_required_schemas(payload.requiredSchemas, config.default_schemas))
        logger.info("verify-and-attest %s for %s (%s)", did, address, "transfer" if tx_hash else "automated")

        outcome = services.verify_and_attest(
            did=did,
            connected_address=address,
            required_schemas=schemas,
            config=config,
            tx_hash=tx_hash,
        )

        extra = {"elapsed": presenters.elapsed_ms(t0, perf_counter())}
        if config.debug:
            extra["debug"] = presenters.debug_payload(
                outcome.context, config, signer=outcome.signer, report=outcome.report
            )

        if outcome.kind == services.VERIFICATION_FAILED:
            result = outcome.verification
            raise VerificationFailedError(
                message=result.reason or "DID ownership verification failed",
                errors=result.details,
                extra={**presenters.verification_failed_extra(outcome), **extra},
            )
        if outcome.kind == services.WRITE_FAILED:
            raise AttestationWriteError(
                message="Failed to write attestations to blockchain",
                errors=outcome.report.errors,
                extra={**presenters.write_failed_extra(outcome), **extra},
            )

        if outcome.kind == services.FAST_PATH:
            body = presenters.fast_path_body(outcome)
        else:
            body = presenters.written_body(outcome)
        return self.create_response(ok=True, status="ready", body={**body, **extra})

    @route.post("/discover-controlling-wallet")
    def discover_controlling_wallet(self, request, payload: DiscoverWalletIn):
        did = validate_did_field(payload.did)
        data = services.discover_wallet(did, config=load_attestation_config())
        return self.create_response(ok=True, status="ready", body=data)

    @route.post("/transfer-instructions")
    def transfer_instructions(self, request, payload: TransferInstructionsIn):
        did = validate_did_field(payload.did)
        address = validate_connected_address(payload.connectedAddress)
        data = services.transfer_instructions(did, address, purpose=payload.proofPurpose or SHARED_CONTROL)
        return self.create_response(ok=True, status="ready", body=data)
