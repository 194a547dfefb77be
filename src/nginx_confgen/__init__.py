"""nginx-confgen - Generate, import and lint nginx server configurations.

One structured model is the source of truth. The generator renders it to
nginx text, the importer reads nginx text back into it, and the lint engine
audits it and repairs what it can.
"""

__version__ = "0.1.0"

from nginx_confgen.engine.linter import apply_all_fixes, apply_fix, lint
from nginx_confgen.generator.renderer import generate
from nginx_confgen.generator.validator import validate
from nginx_confgen.model.config import NginxConfig, create_default_config
from nginx_confgen.parser.ast import build_ast
from nginx_confgen.parser.nginx_conf import import_config, parse_config
from nginx_confgen.parser.tokenizer import tokenize

__all__ = [
    "NginxConfig",
    "__version__",
    "apply_all_fixes",
    "apply_fix",
    "build_ast",
    "create_default_config",
    "generate",
    "import_config",
    "lint",
    "parse_config",
    "tokenize",
    "validate",
]
