"""Configuration loading for erlboot."""

from erlboot.config.evaluator import EvalError, ScriptEvaluator, evaluate_script
from erlboot.config.functions import FunctionHandler
from erlboot.config.loader import CONFIG_FILE_NAME, find_project_config, load_config
from erlboot.config.models import ProjectConfig

__all__ = [
    "CONFIG_FILE_NAME",
    "EvalError",
    "FunctionHandler",
    "ProjectConfig",
    "ScriptEvaluator",
    "evaluate_script",
    "find_project_config",
    "load_config",
]
