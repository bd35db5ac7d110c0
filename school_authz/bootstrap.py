"""
Process-wide AccessControl, built once from settings.

`build_access_control` is the boot step: it loads the taxonomy (built-in
tables or TAXONOMY_FILE), validates it, and wires engine, scope resolver and
capability policy together. A configuration error propagates and must abort
startup.
"""

import logging
from functools import lru_cache

from school_authz.auth.access import AccessControl
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator, TaxonomyConfig
from school_authz.config import Settings, settings as default_settings
from school_authz.metrics import DecisionMetrics

logger = logging.getLogger(__name__)


def load_taxonomy_config(settings: Settings) -> TaxonomyConfig:
    if settings.taxonomy_file:
        logger.info("Loading taxonomy from %s", settings.taxonomy_file)
        return TaxonomyConfig.from_file(settings.taxonomy_file)
    return TaxonomyConfig.default()


def build_access_control(settings: Settings | None = None) -> AccessControl:
    settings = settings or default_settings
    metrics = DecisionMetrics(settings.metrics_enabled)
    taxonomy = PermissionTaxonomyGenerator(load_taxonomy_config(settings), metrics=metrics).generate()
    return AccessControl.from_registry(
        taxonomy.registry,
        resend_invitation_roles=settings.resend_invitation_role_set,
    )


@lru_cache(maxsize=1)
def get_access_control() -> AccessControl:
    return build_access_control()
