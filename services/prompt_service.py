"""
Prompt service for managing LLM prompt templates and formatting.
"""
import logging

from config.prompts import HAZARD_ANALYSIS_PROMPT, RECYCLING_ASSISTANT_PROMPT

logger = logging.getLogger(__name__)


class PromptService:
    """Service for managing and formatting LLM prompt templates."""

    def __init__(self):
        """Initialize prompt service."""
        self.prompts = {
            'hazard_analysis': HAZARD_ANALYSIS_PROMPT,
            'recycling_assistant': RECYCLING_ASSISTANT_PROMPT
        }

    def get_prompt(self, prompt_type: str, **kwargs) -> str:
        """
        Get a formatted prompt by type.

        Args:
            prompt_type: The type of prompt to retrieve
            **kwargs: Variables to format into the prompt template

        Returns:
            Formatted prompt string

        Raises:
            ValueError: If prompt type is not found
        """
        if prompt_type not in self.prompts:
            available_types = list(self.prompts.keys())
            raise ValueError(f"Unknown prompt type '{prompt_type}'. Available types: {available_types}")

        template = self.prompts[prompt_type]

        try:
            formatted_prompt = template.format(**kwargs)
            logger.debug(f"Generated prompt for type '{prompt_type}' with {len(kwargs)} parameters")
            return formatted_prompt
        except KeyError as e:
            raise ValueError(f"Missing required parameter for prompt '{prompt_type}': {e}")

    def get_hazard_analysis_prompt(self) -> str:
        """Prompt sent together with an uploaded item image."""
        return self.get_prompt('hazard_analysis')

    def get_assistant_prompt(self, question: str) -> str:
        """
        Get formatted recycling assistant prompt.

        Args:
            question: Free-text user question

        Returns:
            Formatted assistant prompt
        """
        return self.get_prompt('recycling_assistant', question=question)

    def list_available_prompts(self) -> list:
        """List all available prompt types."""
        return list(self.prompts.keys())
