"""Structural check deciding whether a directory holds a usable Vosk model."""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Set, Tuple

from .logger import get_logger, log_event
from .models import VerificationResult
from .utils import iter_files

ACOUSTIC = 'acoustic'

# Acceptable relative-path suffixes for each kind of model artifact.
SIGNATURE_GROUPS: Dict[str, Tuple[str, ...]] = {
    ACOUSTIC: ('am/final.mdl', 'final.mdl'),
    'graph': ('graph/hclg.fst', 'hclg.fst', 'gr.fst'),
    'config': ('conf/model.conf', 'conf/mfcc.conf', 'mfcc.conf'),
    'ivector': ('ivector/final.ie', 'ivector/final.dubm', 'ivector/final.mat'),
    'phones': ('graph/phones/word_boundary.int', 'word_boundary.int', 'phones.txt'),
    'disambig': ('disambig_tid.int',),
}

MIN_SUPPORTING_GROUPS = 2
SAMPLE_SIZE = 10


class ModelVerifier:
    """Decides whether an extracted directory is a complete model.

    The acoustic model is required; of the five supporting groups
    (graph, config, ivector, phones, disambig) at least two must be present.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger('verifier')

    @staticmethod
    def collect_signatures(root: Path) -> Set[str]:
        """Relative paths of all regular files under root, lower-cased with '/' separators."""
        signatures = set()
        for path in iter_files(root, skip_hidden=True):
            relative = path.relative_to(root).as_posix().replace('\\', '/').lower()
            if relative:
                signatures.add(relative)
        return signatures

    @staticmethod
    def match_groups(signatures: Iterable[str]) -> Dict[str, str]:
        """Map each present group name to the first path that satisfied it."""
        ordered = sorted(signatures)
        found = {}
        for group, suffixes in SIGNATURE_GROUPS.items():
            for suffix in suffixes:
                match = next((s for s in ordered if s.endswith(suffix)), None)
                if match is not None:
                    found[group] = match
                    break
        return found

    @classmethod
    def evaluate(cls, signatures: Set[str]) -> Tuple[bool, Dict[str, str]]:
        if not signatures:
            return False, {}
        found = cls.match_groups(signatures)
        supporting = sum(1 for group in found if group != ACOUSTIC)
        return ACOUSTIC in found and supporting >= MIN_SUPPORTING_GROUPS, found

    def is_valid(self, root: Path) -> bool:
        """Verify quietly; used while searching for a model root."""
        if not root.is_dir():
            return False
        valid, _ = self.evaluate(self.collect_signatures(root))
        return valid

    def verify(self, root: Path) -> VerificationResult:
        """Verify root and log the outcome with diagnostics."""
        root = Path(root)
        if not root.is_dir():
            log_event(self.logger, logging.INFO, "verification_result",
                      path=str(root), valid=False, reason="directory does not exist")
            return VerificationResult(valid=False)

        signatures = self.collect_signatures(root)
        if not signatures:
            log_event(self.logger, logging.INFO, "verification_result",
                      path=str(root), valid=False, reason="no files")
            return VerificationResult(valid=False)

        valid, found = self.evaluate(signatures)
        result = VerificationResult(
            valid=valid,
            matched=set(found.values()),
            file_count=len(signatures),
            sample=sorted(signatures)[:SAMPLE_SIZE],
        )
        log_event(self.logger, logging.INFO, "verification_result",
                  path=str(root), valid=valid, groups=sorted(found),
                  file_count=result.file_count)
        if found:
            log_event(self.logger, logging.DEBUG, "verification_matches",
                      matched=sorted(result.matched))
        if not valid:
            log_event(self.logger, logging.DEBUG, "verification_sample",
                      sample=result.sample)
        return result
