from .VERSION import Version
from .config import Config
from .helpers import HelperRegistry, helper_functions
from .model import (
    Certificate,
    Endpoint,
    InsecureEdgeTerminationPolicy,
    ServiceAliasConfig,
    ServiceUnit,
    TemplateData,
    TLSTermination,
    build_certificate_index,
)
from .state import StateError, load_template_data
