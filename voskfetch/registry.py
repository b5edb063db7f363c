"""Static table of the language models that can be downloaded.

The table is built once at import time and never mutated; pass the
``REGISTRY`` instance (or one built from another table in tests) to the
download manager.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from .errors import UnknownModelError
from .models import ModelDescriptor

BASE_URL = 'https://alphacephei.com/vosk/models/'

# (language code, model name, display name, archive file)
_MODEL_TABLE: Tuple[Tuple[str, str, str, str], ...] = (
    ('en-us', 'model-en', 'English (US)', 'vosk-model-small-en-us-0.15.zip'),
    ('de', 'model-de', 'German', 'vosk-model-small-de-0.15.zip'),
    ('fr', 'model-fr', 'French', 'vosk-model-small-fr-0.22.zip'),
    ('es', 'model-es', 'Spanish', 'vosk-model-small-es-0.42.zip'),
    ('pt', 'model-pt', 'Portuguese', 'vosk-model-small-pt-0.3.zip'),
    ('zh', 'model-zh', 'Chinese', 'vosk-model-small-cn-0.22.zip'),
    ('ru', 'model-ru', 'Russian', 'vosk-model-small-ru-0.22.zip'),
    ('tr', 'model-tr', 'Turkish', 'vosk-model-small-tr-0.3.zip'),
    ('vi', 'model-vi', 'Vietnamese', 'vosk-model-small-vn-0.3.zip'),
    ('it', 'model-it', 'Italian', 'vosk-model-small-it-0.22.zip'),
    ('hi', 'model-hi', 'Hindi', 'vosk-model-small-hi-0.22.zip'),
    ('gu', 'model-gu', 'Gujarati', 'vosk-model-small-gu-0.42.zip'),
    ('te', 'model-te', 'Telugu', 'vosk-model-small-te-0.42.zip'),
    ('ja', 'model-ja', 'Japanese', 'vosk-model-small-ja-0.22.zip'),
    ('ko', 'model-ko', 'Korean', 'vosk-model-small-ko-0.22.zip'),
)


class ModelRegistry:
    """Read-only mapping of model name to ModelDescriptor."""

    def __init__(self, descriptors: Iterable[ModelDescriptor]):
        by_name: Dict[str, ModelDescriptor] = {}
        by_language: Dict[str, str] = {}
        for descriptor in descriptors:
            if descriptor.name in by_name:
                raise ValueError(f"Duplicate model name: {descriptor.name}")
            by_name[descriptor.name] = descriptor
            by_language[descriptor.language] = descriptor.name
        self._by_name: Mapping[str, ModelDescriptor] = MappingProxyType(by_name)
        self._by_language: Mapping[str, str] = MappingProxyType(by_language)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def get(self, name: str) -> ModelDescriptor:
        """Return the descriptor for name, raising UnknownModelError if absent."""
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownModelError(name) from None

    def for_language(self, code: str) -> ModelDescriptor:
        """Return the descriptor serving a language code such as 'de' or 'en-us'."""
        name = self._by_language.get(code.lower())
        if name is None:
            raise UnknownModelError(code)
        return self._by_name[name]

    def lookup(self, key: str) -> ModelDescriptor:
        """Accept either a model name or a language code."""
        if key in self._by_name:
            return self._by_name[key]
        return self.for_language(key)

    def languages(self) -> List[Dict[str, str]]:
        return [
            {'code': d.language, 'model_name': d.name, 'name': d.language_name}
            for d in self
        ]


REGISTRY = ModelRegistry(
    ModelDescriptor(name=name, url=BASE_URL + archive, language=code, language_name=display)
    for code, name, display, archive in _MODEL_TABLE
)
