"""
Outperform/underperform classification and the Q3 -> Q4 transition table.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Set

import pandas as pd


class Label(Enum):
    OUTPERFORM = 'Outperform'
    UNDERPERFORM = 'Underperform'


LABELS = (Label.OUTPERFORM, Label.UNDERPERFORM)


def classify(total_return: float, benchmark_return: float) -> Label:
    """Outperform iff strictly above the benchmark; ties underperform."""
    if total_return > benchmark_return:
        return Label.OUTPERFORM
    return Label.UNDERPERFORM


def _empty_sets() -> Dict[Label, Set[str]]:
    return {label: set() for label in LABELS}


@dataclass
class Classification:
    """Per-quarter partition of tickers into outperform/underperform sets."""
    q3: Dict[Label, Set[str]] = field(default_factory=_empty_sets)
    q4: Dict[Label, Set[str]] = field(default_factory=_empty_sets)

    @property
    def symbols(self) -> Set[str]:
        return set().union(*self.q3.values())

    def label_of(self, symbol: str, quarter: str = "q3") -> Label:
        sets = self.q3 if quarter == "q3" else self.q4
        for label, members in sets.items():
            if symbol in members:
                return label
        raise KeyError(symbol)


def partition(records: Iterable, benchmark) -> Classification:
    """Split records into outperform/underperform sets for Q3 and for Q4."""
    result = Classification()
    for record in records:
        result.q3[classify(record.q3_return, benchmark.q3)].add(record.symbol)
        result.q4[classify(record.q4_return, benchmark.q4)].add(record.symbol)
    return result


def transition_table(classification: Classification) -> pd.DataFrame:
    """
    2x2 contingency table: rows are the Q3 label, columns the Q4 label,
    cells count tickers in both sets. Cells sum to the ticker count.
    """
    counts = {
        q4_label.value: [len(classification.q3[q3_label] & classification.q4[q4_label])
                         for q3_label in LABELS]
        for q4_label in LABELS
    }
    table = pd.DataFrame(counts, index=[label.value for label in LABELS])
    table.index.name = 'Q3'
    table.columns.name = 'Q4'
    return table
