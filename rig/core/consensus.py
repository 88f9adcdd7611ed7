# rig/core/consensus.py
"""
Consensus of an ensemble of Residue Interaction Graphs

Template graphs, each numbered by its own sequence, are related through an
alignment. Contacts are counted per pair of alignment columns (the vote
tally); consensus and average graphs are the tallied column pairs mapped back
onto the target sequence.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from rig.config import ConfigManager, DEFAULT_CONFIG
from rig.exceptions import ConsensusInputError, TemplateNotFoundError, ValidationError
from rig.models.alignment import GAP, AlignmentIndex
from rig.models.graph import ContactEdge, ResidueInteractionGraph
from rig.utils.graph_io import write_average_graph_with_voters

if TYPE_CHECKING:
    from rig.core.ensemble import RIGEnsemble

DUMMY_TARGET_TAG = "dummyTag"
DUMMY_RESIDUE = "X"
ENSEMBLE_TARGET_TAG = "target"
DEFAULT_THRESHOLD = DEFAULT_CONFIG["consensus"]["threshold"]
DEFAULT_MIN_SCORE = DEFAULT_CONFIG["consensus"]["min_score"]

ColumnPair = Tuple[int, int]


@dataclass(frozen=True)
class Vote:
    """Votes for one pair of alignment columns"""
    count: int               # templates containing the contact
    potential_count: int     # templates where neither column is a gap
    voters: FrozenSet[str]


class VoteTally(Mapping):
    """Votes keyed by (column_i, column_j), iterated in ascending order

    Only pairs with at least one vote are stored. Undirected tallies are keyed
    with column_i < column_j.
    """

    def __init__(self, votes: Dict[ColumnPair, Vote], directed: bool):
        self.directed = directed
        self._votes = dict(sorted(votes.items()))

    def _key(self, col_i: int, col_j: int) -> ColumnPair:
        if self.directed or col_i < col_j:
            return (col_i, col_j)
        return (col_j, col_i)

    def __getitem__(self, key: ColumnPair) -> Vote:
        return self._votes[self._key(*key)]

    def __contains__(self, key) -> bool:
        return self._key(*key) in self._votes

    def __iter__(self) -> Iterator[ColumnPair]:
        return iter(self._votes)

    def __len__(self) -> int:
        return len(self._votes)

    def count(self, col_i: int, col_j: int) -> int:
        """Vote count of a column pair, 0 if untallied"""
        vote = self._votes.get(self._key(col_i, col_j))
        return vote.count if vote else 0


class ConsensusBuilder:
    """Builds consensus and average graphs from aligned template graphs"""

    def __init__(self, alignment: AlignmentIndex,
                 templates: Mapping, target_tag: str,
                 target_sequence: Optional[str] = None,
                 threshold: float = DEFAULT_THRESHOLD,
                 min_score: float = DEFAULT_MIN_SCORE):
        """Validate the inputs and tally the votes

        Args:
            alignment: Alignment holding every template and the target
            templates: Template graphs by alignment tag
            target_tag: Alignment tag of the target sequence
            target_sequence: Expected target sequence, checked against the
                alignment when given
            threshold: Default consensus threshold for build_consensus
            min_score: Default cut-off for filter_by_score and filter_until_stable

        Raises:
            ConsensusInputError: If templates, target and alignment are inconsistent
        """
        self.logger = logging.getLogger("rig.consensus")
        self.alignment = alignment
        self.templates: Dict[str, ResidueInteractionGraph] = dict(sorted(templates.items()))
        self.target_tag = target_tag
        self.threshold = threshold
        self.min_score = min_score

        self._validate(target_sequence)

        self.sequence = alignment.get_sequence_no_gaps(target_tag)
        first = next(iter(self.templates.values()))
        self.contact_type = first.contact_type
        self.cutoff = first.cutoff
        self.directed = first.directed

        self.tally = self.count_votes()

    @classmethod
    def from_ensemble(cls, ensemble: 'RIGEnsemble') -> 'ConsensusBuilder':
        """Builder over graphs of one sequence using a trivial alignment"""
        if len(ensemble) == 0:
            raise ConsensusInputError("Can't build a consensus of an empty ensemble")
        templates = {f"{index:03d}": graph for index, graph in enumerate(ensemble)}
        sequences = {ENSEMBLE_TARGET_TAG: ensemble.sequence}
        sequences.update({tag: graph.sequence for tag, graph in templates.items()})
        alignment = AlignmentIndex.trivial(sequences)
        return cls(alignment, templates, ENSEMBLE_TARGET_TAG,
                   target_sequence=ensemble.sequence, threshold=ensemble.threshold)

    @classmethod
    def from_config(cls, config: ConfigManager, alignment: AlignmentIndex,
                    templates: Mapping, target_tag: str,
                    target_sequence: Optional[str] = None) -> 'ConsensusBuilder':
        """Builder with threshold and min_score from the consensus section"""
        return cls(alignment, templates, target_tag, target_sequence=target_sequence,
                   threshold=config.get('consensus.threshold', DEFAULT_THRESHOLD),
                   min_score=config.get('consensus.min_score', DEFAULT_MIN_SCORE))

    @classmethod
    def without_target(cls, alignment: AlignmentIndex, templates: Mapping) -> 'ConsensusBuilder':
        """Builder whose output graphs are numbered by alignment column"""
        dummy_sequence = DUMMY_RESIDUE * alignment.alignment_length
        extended = alignment.copy_and_add(DUMMY_TARGET_TAG, dummy_sequence)
        return cls(extended, templates, DUMMY_TARGET_TAG)

    def _validate(self, target_sequence: Optional[str]) -> None:
        al = self.alignment
        if not self.templates:
            raise ConsensusInputError("At least one template graph is required")

        if not al.has_tag(self.target_tag):
            raise ConsensusInputError(
                "Alignment doesn't contain the target sequence, check the FASTA tags",
                {'target_tag': self.target_tag}
            )
        if self.target_tag in self.templates:
            raise ConsensusInputError(
                f"Target tag {self.target_tag} is also used by a template",
                {'target_tag': self.target_tag}
            )

        missing = [tag for tag in self.templates if not al.has_tag(tag)]
        if missing:
            raise ConsensusInputError(
                "Alignment is missing template sequences, check the FASTA tags",
                {'missing_tags': missing}
            )

        if len(self.templates) != al.number_of_sequences - 1:
            raise ConsensusInputError(
                "Number of sequences in alignment is different from number of templates + 1",
                {'templates': len(self.templates), 'alignment_sequences': al.number_of_sequences}
            )

        directedness = {tag: graph.directed for tag, graph in self.templates.items()}
        if len(set(directedness.values())) > 1:
            raise ConsensusInputError("Template graphs mix directed and undirected contacts",
                                      {'directed': directedness})

        for tag, graph in self.templates.items():
            aligned = al.get_sequence_no_gaps(tag)
            if aligned != graph.sequence:
                raise ConsensusInputError(
                    f"Sequence of template graph {tag} does not match sequence in alignment",
                    {'tag': tag, 'graph_sequence': graph.sequence, 'alignment_sequence': aligned}
                )

        if target_sequence is not None:
            aligned = al.get_sequence_no_gaps(self.target_tag)
            if aligned != target_sequence:
                raise ConsensusInputError(
                    "Target sequence in alignment does not match the target sequence",
                    {'tag': self.target_tag, 'target_sequence': target_sequence,
                     'alignment_sequence': aligned}
                )

    # -- tally -------------------------------------------------------------

    def count_votes(self) -> VoteTally:
        """Count, for every pair of alignment columns, the templates in contact there

        Every template contact is mapped to its column pair; column pairs
        where a template has a gap can't receive that template's vote.
        """
        tags = list(self.templates)
        voters: Dict[ColumnPair, List[str]] = {}
        for tag in tags:
            graph = self.templates[tag]
            for i, j, _ in graph.edges():
                col_i = self.alignment.seq2al(tag, i)
                col_j = self.alignment.seq2al(tag, j)
                if not self.directed and col_i > col_j:
                    col_i, col_j = col_j, col_i
                voters.setdefault((col_i, col_j), []).append(tag)

        # residue (non-gap) mask, one row per template
        present = np.array([self.alignment.al2seq_map(tag) != GAP for tag in tags])

        votes = {}
        for (col_i, col_j), tag_list in voters.items():
            potential = int(np.count_nonzero(present[:, col_i - 1] & present[:, col_j - 1]))
            votes[(col_i, col_j)] = Vote(len(tag_list), potential, frozenset(tag_list))

        self.logger.debug(f"Tallied {len(votes)} column pairs over {len(tags)} templates")
        return VoteTally(votes, self.directed)

    @property
    def number_of_templates(self) -> int:
        return len(self.templates)

    @property
    def template_tags(self) -> List[str]:
        return list(self.templates)

    # -- graphs ------------------------------------------------------------

    def _new_target_graph(self) -> ResidueInteractionGraph:
        return ResidueInteractionGraph(self.sequence, self.contact_type, self.cutoff, self.directed)

    def _to_target(self, col_i: int, col_j: int) -> Optional[Tuple[int, int]]:
        i = self.alignment.al2seq(self.target_tag, col_i)
        j = self.alignment.al2seq(self.target_tag, col_j)
        if i == GAP or j == GAP:
            return None
        return i, j

    def build_consensus(self, threshold: Optional[float] = None) -> ResidueInteractionGraph:
        """Target graph with the contacts voted for by at least ceil(N * threshold) templates

        Args:
            threshold: Fraction of templates in (0, 1], defaults to self.threshold

        Returns:
            Unweighted consensus graph over the target sequence
        """
        if threshold is None:
            threshold = self.threshold
        if not 0 < threshold <= 1:
            raise ValidationError(f"Consensus threshold must be in (0, 1], got {threshold}")

        vote_threshold = math.ceil(self.number_of_templates * threshold)
        graph = self._new_target_graph()
        skipped = 0
        for (col_i, col_j), vote in self.tally.items():
            if vote.count < vote_threshold:
                continue
            pair = self._to_target(col_i, col_j)
            if pair is None:
                skipped += 1
                continue
            graph.add_edge(*pair)

        self.logger.debug(f"Consensus at threshold {threshold} (>= {vote_threshold} votes): "
                          f"{graph.edge_count} contacts, {skipped} mapped to target gaps")
        return graph

    def build_average(self) -> ResidueInteractionGraph:
        """Target graph with every tallied contact weighted by its vote fraction"""
        graph = self._new_target_graph()
        n = self.number_of_templates
        for (col_i, col_j), vote in self.tally.items():
            pair = self._to_target(col_i, col_j)
            if pair is not None:
                graph.add_edge(*pair, ContactEdge(weight=vote.count / n, voters=vote.voters))
        return graph

    def write_average_graph_with_voters(self, path) -> None:
        """Write the average graph with one voter column per template"""
        write_average_graph_with_voters(self.build_average(), self.template_tags, path)

    def graph_with_top_contacts(self, num_contacts: int) -> ResidueInteractionGraph:
        """Target graph with the num_contacts most voted contacts (ties by position)"""
        average = self.build_average()
        ranked = sorted(average.edges(), key=lambda item: (-item[2].weight, item[0], item[1]))
        graph = self._new_target_graph()
        for i, j, _ in ranked[:num_contacts]:
            graph.add_edge(i, j)
        return graph

    # -- scores ------------------------------------------------------------

    def _template(self, tag: str) -> ResidueInteractionGraph:
        graph = self.templates.get(tag)
        if graph is None:
            raise TemplateNotFoundError(f"No template {tag} in ensemble",
                                        {'tag': tag, 'templates': self.template_tags})
        return graph

    def consensus_score(self, tag: str, normalize_by_nodes: bool = True,
                        normalize_by_templates: bool = True) -> float:
        """Sum of the votes received by each contact of one template

        Args:
            tag: Template tag
            normalize_by_nodes: Divide by the alignment length
            normalize_by_templates: Divide by the number of templates

        Returns:
            Consensus score of the template

        Raises:
            TemplateNotFoundError: If tag is not a current template
        """
        graph = self._template(tag)
        score = 0.0
        for i, j, _ in graph.edges():
            score += self.tally.count(self.alignment.seq2al(tag, i), self.alignment.seq2al(tag, j))

        if normalize_by_nodes:
            score /= self.alignment.alignment_length
        if normalize_by_templates:
            score /= self.number_of_templates
        return score

    def ensemble_score(self) -> float:
        """Sum of the positive normalized consensus scores of all templates"""
        return sum(s for s in (self.consensus_score(tag) for tag in self.templates) if s > 0)

    def filter_by_score(self, min_score: Optional[float] = None) -> List[str]:
        """Remove templates scoring below min_score and re-tally

        Scores of all templates are computed against the current tally before
        anything is removed. Scores change after the re-tally, so repeated
        calls may remove more templates.

        Returns:
            Tags of the removed templates

        Raises:
            ConsensusInputError: If every template would be removed
        """
        if min_score is None:
            min_score = self.min_score
        scores = {tag: self.consensus_score(tag) for tag in self.templates}
        removed = [tag for tag, score in scores.items() if score < min_score]
        if len(removed) == len(self.templates):
            raise ConsensusInputError(f"Filtering at {min_score} would remove every template",
                                      {'scores': scores})

        for tag in removed:
            del self.templates[tag]
        if removed:
            self.logger.info(f"Removed {len(removed)} templates scoring below {min_score}: "
                             f"{', '.join(removed)}")
        self.tally = self.count_votes()
        return removed

    def filter_until_stable(self, min_score: Optional[float] = None,
                            max_passes: int = 100) -> List[List[str]]:
        """Repeat filter_by_score until a pass removes nothing

        Returns:
            Removed tags of every pass; the last entry is empty unless
            max_passes was reached
        """
        if min_score is None:
            min_score = self.min_score
        passes = []
        for _ in range(max_passes):
            removed = self.filter_by_score(min_score)
            passes.append(removed)
            if not removed:
                break
        else:
            self.logger.warning(f"Filtering at {min_score} not stable after {max_passes} passes")
        return passes

    def score_table(self) -> pd.DataFrame:
        """Per-template contact counts and consensus scores"""
        rows = []
        for tag, graph in self.templates.items():
            rows.append({
                'tag': tag,
                'contacts': graph.edge_count,
                'raw_score': self.consensus_score(tag, False, False),
                'score': self.consensus_score(tag),
            })
        return pd.DataFrame(rows, columns=['tag', 'contacts', 'raw_score', 'score']).set_index('tag')

    # -- ensemble statistics -----------------------------------------------

    def _contact_counts(self) -> np.ndarray:
        return np.sort(np.array([g.edge_count for g in self.templates.values()]))

    def avg_num_contacts(self) -> float:
        return float(np.mean(self._contact_counts()))

    def median_num_contacts(self) -> int:
        """Upper median of the template contact counts"""
        counts = self._contact_counts()
        return int(counts[len(counts) // 2])

    def quantile_num_contacts(self, fraction: float) -> int:
        """Contact count at a quantile (clamped to [0, 1]) of the sorted counts"""
        counts = self._contact_counts()
        fraction = min(max(fraction, 0.0), 1.0)
        index = min(int(round(fraction * len(counts))), len(counts) - 1)
        return int(counts[index])

    def min_num_contacts(self) -> int:
        return int(self._contact_counts()[0])

    def max_num_contacts(self) -> int:
        return int(self._contact_counts()[-1])

    def pairwise_overlap(self, tag1: str, tag2: str) -> int:
        """Number of contacts of tag1 present at the aligned positions of tag2"""
        graph1, graph2 = self._template(tag1), self._template(tag2)
        shared = 0
        for i, j, _ in graph1.edges():
            i2 = self.alignment.al2seq(tag2, self.alignment.seq2al(tag1, i))
            j2 = self.alignment.al2seq(tag2, self.alignment.seq2al(tag1, j))
            if i2 != GAP and j2 != GAP and graph2.contains_edge(i2, j2):
                shared += 1
        return shared

    def sum_of_pairs_overlap(self) -> int:
        tags = self.template_tags
        return sum(self.pairwise_overlap(t1, t2) for t1 in tags for t2 in tags if t1 < t2)
