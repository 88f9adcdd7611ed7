# rig/core/ensemble.py
"""
Ensembles of graphs over one sequence, e.g. the models of an NMR structure
or a set of predictions for one target
"""

import logging
import os
from typing import Iterable, Iterator, List, Mapping, Optional

from rig.config import ConfigManager
from rig.core.consensus import DEFAULT_THRESHOLD, ConsensusBuilder
from rig.exceptions import GraphFileFormatError, ValidationError
from rig.models.graph import DEFAULT_CONTACT_TYPE, DEFAULT_CUTOFF, ResidueInteractionGraph
from rig.utils.graph_io import (
    CASP_RR_FILE, GRAPH_FILE, guess_file_type, read_casp_rr_file, read_graph_file
)


class RIGEnsemble:
    """Graphs sharing one sequence, contact type and distance cutoff"""

    def __init__(self, contact_type: str = DEFAULT_CONTACT_TYPE, cutoff: float = DEFAULT_CUTOFF,
                 only_first_models: bool = False, threshold: float = DEFAULT_THRESHOLD):
        """
        Args:
            contact_type: Contact type every graph must have
            cutoff: Distance cutoff every graph must have
            only_first_models: Skip graphs whose model number is not 1
            threshold: Default threshold of consensus_graph
        """
        self.contact_type = contact_type
        self.cutoff = cutoff
        self.only_first_models = only_first_models
        self.threshold = threshold
        self._graphs: List[ResidueInteractionGraph] = []
        self._names: List[str] = []
        self.logger = logging.getLogger("rig.ensemble")

    @classmethod
    def from_config(cls, config: ConfigManager) -> 'RIGEnsemble':
        return cls(config.get('graph.contact_type', DEFAULT_CONTACT_TYPE),
                   config.get('graph.cutoff', DEFAULT_CUTOFF),
                   threshold=config.get('consensus.threshold', DEFAULT_THRESHOLD))

    def __len__(self) -> int:
        return len(self._graphs)

    def __iter__(self) -> Iterator[ResidueInteractionGraph]:
        return iter(self._graphs)

    def __getitem__(self, index: int) -> ResidueInteractionGraph:
        return self._graphs[index]

    @property
    def names(self) -> List[str]:
        """Source name (file name or map key) of every graph"""
        return list(self._names)

    @property
    def sequence(self) -> str:
        if not self._graphs:
            raise ValidationError("Ensemble is empty")
        return self._graphs[0].sequence

    def add_graph(self, graph: ResidueInteractionGraph, name: Optional[str] = None) -> bool:
        """Add a graph

        Returns:
            False if the graph was skipped for not being a first model

        Raises:
            ValidationError: If contact type, cutoff or sequence differ from the ensemble's
        """
        if self.only_first_models and graph.model != 1:
            self.logger.debug(f"Skipping model {graph.model} of {name}")
            return False
        if graph.contact_type != self.contact_type:
            raise ValidationError("Contact types do not match",
                                  {'ensemble': self.contact_type, 'graph': graph.contact_type,
                                   'name': name})
        if graph.cutoff != self.cutoff:
            raise ValidationError("Distance cutoffs do not match",
                                  {'ensemble': self.cutoff, 'graph': graph.cutoff, 'name': name})
        if self._graphs and graph.sequence != self.sequence:
            raise ValidationError("Graph sequence differs from the ensemble sequence",
                                  {'ensemble': self.sequence, 'graph': graph.sequence, 'name': name})
        self._graphs.append(graph)
        self._names.append(name if name is not None else f"{len(self._graphs):03d}")
        return True

    def load_from_graph_map(self, graphs: Mapping[str, ResidueInteractionGraph]) -> int:
        """Add named graphs in name order; returns the number added"""
        return sum(1 for name in sorted(graphs) if self.add_graph(graphs[name], name))

    def load_files(self, paths: Iterable[str]) -> int:
        """Load contact graph and CASP RR files; returns the number of graphs added

        Raises:
            GraphFileFormatError: For files of unknown type
        """
        loaded = 0
        for path in paths:
            file_type = guess_file_type(path)
            if file_type == GRAPH_FILE:
                graph = read_graph_file(path)
            elif file_type == CASP_RR_FILE:
                graph = read_casp_rr_file(path).to_graph(self.contact_type, self.cutoff)
            else:
                raise GraphFileFormatError(f"Unknown contact file type: {path}", {'path': path})
            if self.add_graph(graph, os.path.basename(path)):
                loaded += 1
        self.logger.info(f"Loaded {loaded} graphs, ensemble size is {len(self)}")
        return loaded

    def load_from_list_file(self, list_file: str) -> int:
        """Load the files named in a list file, one path per line"""
        with open(list_file) as f:
            paths = [line.strip() for line in f if line.strip()]
        base_dir = os.path.dirname(list_file)
        return self.load_files(p if os.path.isabs(p) else os.path.join(base_dir, p) for p in paths)

    def load_from_directory(self, directory: str) -> int:
        """Load every regular file of a directory, in file name order

        Raises:
            NotADirectoryError: If directory is not a directory
        """
        if not os.path.isdir(directory):
            raise NotADirectoryError(f"{directory} is not a directory")
        paths = [os.path.join(directory, name) for name in sorted(os.listdir(directory))]
        return self.load_files(p for p in paths if os.path.isfile(p))

    def average_graph(self) -> ResidueInteractionGraph:
        return ConsensusBuilder.from_ensemble(self).build_average()

    def consensus_graph(self, threshold: Optional[float] = None) -> ResidueInteractionGraph:
        return ConsensusBuilder.from_ensemble(self).build_consensus(threshold)
