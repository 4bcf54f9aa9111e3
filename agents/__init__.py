"""Language model agents for the Signalboard feedback pipeline.

FeedbackClassifier:
    One model call per item; always returns a valid Classification.

DigestAgent:
    One model call per batch; falls back to a computed digest.

create_generator:
    Builds the text generation backend for a model string.

Example:
    >>> from agents import FeedbackClassifier, create_generator
    >>> classifier = FeedbackClassifier(create_generator(config.classifier_model, config))
"""

from agents.classifier import FeedbackClassifier
from agents.generator import create_generator
from agents.summarizer import DigestAgent

__all__ = [
    "FeedbackClassifier",
    "DigestAgent",
    "create_generator",
]
