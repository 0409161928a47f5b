"""A simple summarizer agent and the prompt used for summarizing."""

from __future__ import annotations

from dataclasses import dataclass

from pyano.model_interface import ModelManagerInterface

SUMMARIZER_PROMPT = (
    "\n"
    "    You are a highly skilled summarizer specializing in condensing complex "
    "information into clear, concise summaries. \n"
    "    Your task is to summarize the given text while preserving its key ideas, "
    "structure, and intent. Follow these rules:\n"
    "\n"
    "        Length: Aim for a summary that is about 20% of the original text length "
    "unless specified otherwise.\n"
    "        Clarity: Ensure the summary is easy to read, avoiding technical jargon "
    "unless required.\n"
    "        Accuracy: Retain all critical information and ensure the main points are "
    "correctly represented.\n"
    "        Tone: Match the tone of the original text (e.g., professional, formal, or "
    "casual) unless instructed otherwise.\n"
    "        Avoidance: Do not include opinions, assumptions, or unnecessary details.\n"
    "\n"
    "When summarizing, focus on answering the following:\n"
    "        What is the main purpose of the text?\n"
    "        What are the key arguments, facts, or data points?\n"
    "        What is the conclusion or outcome?\n"
    "\n"
    "Output the summary in a structured format with bullet points or paragraphs as "
    "needed for clarity.\n"
)


@dataclass(frozen=True)
class Message:
    content: str


class SummarizerAgent:
    """A named agent bound to a model manager."""

    def __init__(self, name: str, model_manager: ModelManagerInterface) -> None:
        self.name = name
        self.model_manager = model_manager

    def greet(self) -> Message:
        return Message(f"Hello from Summary Agent: {self.name}")

    def process_with_model(self) -> list[Message]:
        return [self.greet(), Message("Processing complete!")]