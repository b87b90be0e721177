'''
 This module should not import any other swagger_schema modules to avoid circular imports !!!
 It should only be used to load environment variables and read the library settings.
'''
from dotenv import load_dotenv
import logging
import os

_TRUE_VALUES = ("true", "1", "yes", "on")


class SwaggerSchemaEnv:
    __env_loaded = False
    __default_definitions_format = "yaml"
    supported_definitions_formats = ("yaml", "json")

    @staticmethod
    def load_env(env_file: str = None) -> bool:
        """Load the .env file once. Returns True if a file was loaded."""
        if SwaggerSchemaEnv.__env_loaded:
            return True
        if not env_file:
            env_file = os.getenv("ENV_FILE", "./.env")
        if not os.path.isfile(env_file):
            # library use: settings then come from the process environment only
            logging.getLogger(__name__).debug(f"No {env_file} file found")
            return False
        if not load_dotenv(env_file):
            logging.getLogger(__name__).debug(f"Nothing loaded from {env_file}")
            return False
        SwaggerSchemaEnv.__env_loaded = True
        return True

    @staticmethod
    def reset():
        SwaggerSchemaEnv.__env_loaded = False

    @staticmethod
    def ignore_missing_mappings() -> bool:
        """Default unknown-type policy for new engines."""
        return os.getenv("SWAGGER_IGNORE_MISSING_MAPPINGS", "false").strip().lower() in _TRUE_VALUES

    @staticmethod
    def definitions_format() -> str:
        output_format = os.getenv("SWAGGER_DEFINITIONS_FORMAT", SwaggerSchemaEnv.__default_definitions_format)
        output_format = output_format.strip().lower()
        if output_format not in SwaggerSchemaEnv.supported_definitions_formats:
            raise ValueError(f"Unsupported SWAGGER_DEFINITIONS_FORMAT '{output_format}', "
                             f"expected one of {SwaggerSchemaEnv.supported_definitions_formats}")
        return output_format
