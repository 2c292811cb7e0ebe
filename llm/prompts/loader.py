"""Prompt loading and management."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from logger import get_logger

logger = get_logger()


class PromptManager:
    """Manages loading and rendering of prompts from YAML files.

    A prompt file holds ``version``, ``parameters``, ``system_prompt`` and
    ``user_prompt_template``. Both prompt texts are ``str.format`` templates,
    so literal braces (JSON examples) are written doubled.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        """Initialize the prompt manager.

        Args:
            prompts_dir: Directory containing prompt YAML files.
                        Defaults to llm/prompts/ in the project.
        """
        self.prompts_dir = prompts_dir or Path(__file__).parent
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load_prompt(self, prompt_name: str) -> Dict[str, Any]:
        """Load a prompt configuration from YAML file.

        Args:
            prompt_name: Name of the prompt file (without .yaml extension).

        Returns:
            Dictionary containing prompt configuration.

        Raises:
            FileNotFoundError: If prompt file doesn't exist.
            ValueError: If the file has no user_prompt_template.
            yaml.YAMLError: If YAML is invalid.
        """
        if prompt_name in self._cache:
            return self._cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"

        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        logger.info(f"Loading prompt from {prompt_file}")

        with open(prompt_file, "r", encoding="utf-8") as f:
            prompt_config = yaml.safe_load(f) or {}

        if not prompt_config.get("user_prompt_template"):
            raise ValueError(f"Prompt {prompt_name} has no user_prompt_template")

        self._cache[prompt_name] = prompt_config
        return prompt_config

    def render_prompt(
        self, prompt_name: str, variables: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Load and render a prompt with the given variables.

        Args:
            prompt_name: Name of the prompt to load.
            variables: Dictionary of variables to substitute in templates.

        Returns:
            Dictionary with rendered prompts and parameters.
            Keys: system_prompt, user_prompt, parameters, version

        Raises:
            ValueError: If a template references a variable that was not given.
        """
        prompt_config = self.load_prompt(prompt_name)

        try:
            system_prompt = prompt_config.get("system_prompt", "").format(**variables)
            user_prompt = prompt_config["user_prompt_template"].format(**variables)
        except KeyError as e:
            raise ValueError(
                f"Prompt {prompt_name} needs variable {e.args[0]!r}"
            ) from e

        return {
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "parameters": dict(prompt_config.get("parameters", {})),
            "version": prompt_config.get("version", "unknown"),
        }
