from django.apps import AppConfig


class AttestationsConfig(AppConfig):
    name = "src.attestations"
    verbose_name = "DID attestations"
