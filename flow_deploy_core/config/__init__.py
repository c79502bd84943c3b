""" Configuration model, parsers and loader. """

from .defaults import default_config
from .exceptions import (
    ConfigError,
    ConfigNotFoundError,
    InvalidKeyTypeError,
    InvalidSemanticsError,
    InvalidSyntaxError,
    MissingContextFieldError,
    ParserNotFoundError,
)
from .json_parser import JsonParser
from .loader import Loader, load_config, save_config
from .model import (
    AccountConfig,
    AccountKeyConfig,
    Config,
    ContractConfig,
    ContractDeployment,
    DeploymentConfig,
    EmulatorConfig,
    KeyType,
    NetworkConfig,
)
from .parsers import Parser, ParserRegistry
