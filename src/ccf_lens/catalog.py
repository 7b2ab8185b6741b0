"""CCF venue catalog.

Read-only index of conferences and journals with their CCF rank, queryable by
abbreviation, full name, long-form alias or acronym alias.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from ccf_lens.utils import normalize_venue_key

logger = logging.getLogger(__name__)

__all__ = [
    "RANKS",
    "CatalogEntry",
    "CCFCatalog",
    "DEFAULT_ENTRIES",
]

RANKS = ("A", "B", "C")


@dataclass(frozen=True)
class CatalogEntry:
    """A single catalog venue.

    Attributes:
        abbr: Canonical abbreviation (e.g. 'CVPR')
        name: Full venue name
        rank: CCF rank 'A', 'B' or 'C'; None for records loaded without one
        type: 'conference' or 'journal'
        category: CCF research field
        aliases: Alternative long-form names
        acronyms: Alternative short forms (e.g. 'NIPS' for NeurIPS)
    """

    abbr: str
    name: str
    rank: str | None
    type: str = "conference"
    category: str = ""
    aliases: tuple[str, ...] = field(default_factory=tuple)
    acronyms: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogEntry:
        """Build an entry from a plain mapping (e.g. loaded from YAML)."""
        rank = data.get("rank")
        rank = str(rank).upper() if rank else None
        if rank is not None and rank not in RANKS:
            raise ValueError(f"Invalid CCF rank {rank!r} for {data.get('abbr')!r}")
        return cls(
            abbr=str(data["abbr"]),
            name=str(data["name"]),
            rank=rank,
            type=str(data.get("type", "conference")),
            category=str(data.get("category", "")),
            aliases=tuple(data.get("aliases") or ()),
            acronyms=tuple(data.get("acronyms") or ()),
        )


def _c(abbr, name, rank, category, aliases=(), acronyms=()):
    return CatalogEntry(abbr, name, rank, "conference", category, tuple(aliases), tuple(acronyms))


def _j(abbr, name, rank, category, aliases=(), acronyms=()):
    return CatalogEntry(abbr, name, rank, "journal", category, tuple(aliases), tuple(acronyms))


AI = "Artificial Intelligence"
DB = "Database/Data Mining/Information Retrieval"
NET = "Computer Networks"
SEC = "Network and Information Security"
SE = "Software Engineering/Systems Software/Programming Languages"
ARCH = "Computer Architecture/Parallel and Distributed Computing/Storage"
CG = "Computer Graphics and Multimedia"
HCI = "Human-Computer Interaction and Ubiquitous Computing"
TCS = "Theoretical Computer Science"
X = "Interdisciplinary/Comprehensive/Emerging"

DEFAULT_ENTRIES: tuple[CatalogEntry, ...] = (
    # ------------- Artificial Intelligence -------------
    _c("AAAI", "AAAI Conference on Artificial Intelligence", "A", AI,
       ["association for the advancement of artificial intelligence",
        "proceedings of the aaai conference on artificial intelligence"]),
    _c("NeurIPS", "Conference on Neural Information Processing Systems", "A", AI,
       ["advances in neural information processing systems", "neural information processing systems"],
       ["NIPS"]),
    _c("ACL", "Annual Meeting of the Association for Computational Linguistics", "A", AI,
       ["association for computational linguistics"]),
    _c("CVPR", "IEEE/CVF Conference on Computer Vision and Pattern Recognition", "A", AI,
       ["computer vision and pattern recognition", "ieee conference on computer vision and pattern recognition"]),
    _c("ICCV", "International Conference on Computer Vision", "A", AI,
       ["ieee international conference on computer vision", "ieee/cvf international conference on computer vision"]),
    _c("ICML", "International Conference on Machine Learning", "A", AI),
    _c("IJCAI", "International Joint Conference on Artificial Intelligence", "A", AI),
    _c("ECCV", "European Conference on Computer Vision", "B", AI),
    _c("EMNLP", "Conference on Empirical Methods in Natural Language Processing", "B", AI,
       ["empirical methods in natural language processing"]),
    _c("NAACL", "Annual Conference of the North American Chapter of the Association for Computational Linguistics",
       "B", AI, ["north american chapter of the association for computational linguistics"]),
    _c("COLING", "International Conference on Computational Linguistics", "B", AI),
    _c("COLT", "Annual Conference on Computational Learning Theory", "B", AI, ["conference on learning theory"]),
    _c("ECAI", "European Conference on Artificial Intelligence", "B", AI),
    _c("ICRA", "IEEE International Conference on Robotics and Automation", "B", AI,
       ["international conference on robotics and automation"]),
    _c("UAI", "Conference on Uncertainty in Artificial Intelligence", "B", AI, ["uncertainty in artificial intelligence"]),
    _c("AAMAS", "International Joint Conference on Autonomous Agents and Multi-agent Systems", "B", AI),
    _c("ICAPS", "International Conference on Automated Planning and Scheduling", "B", AI),
    _c("KR", "International Conference on Principles of Knowledge Representation and Reasoning", "B", AI),
    _c("AISTATS", "International Conference on Artificial Intelligence and Statistics", "C", AI,
       ["artificial intelligence and statistics"]),
    _c("IROS", "IEEE/RSJ International Conference on Intelligent Robots and Systems", "C", AI,
       ["intelligent robots and systems"]),
    _c("BMVC", "British Machine Vision Conference", "C", AI),
    _c("ACCV", "Asian Conference on Computer Vision", "C", AI),
    _c("CoNLL", "Conference on Computational Natural Language Learning", "C", AI),
    _c("ICPR", "International Conference on Pattern Recognition", "C", AI),
    _c("IJCNN", "International Joint Conference on Neural Networks", "C", AI),
    _c("ICONIP", "International Conference on Neural Information Processing", "C", AI),
    _j("AIJ", "Artificial Intelligence", "A", AI),
    _j("TPAMI", "IEEE Transactions on Pattern Analysis and Machine Intelligence", "A", AI,
       ["transactions on pattern analysis and machine intelligence"], ["PAMI"]),
    _j("IJCV", "International Journal of Computer Vision", "A", AI),
    _j("JMLR", "Journal of Machine Learning Research", "A", AI),
    _j("TNNLS", "IEEE Transactions on Neural Networks and Learning Systems", "B", AI),
    _j("TACL", "Transactions of the Association for Computational Linguistics", "B", AI),
    _j("JAIR", "Journal of Artificial Intelligence Research", "B", AI),
    _j("TASLP", "IEEE/ACM Transactions on Audio, Speech, and Language Processing", "B", AI),
    _j("PR", "Pattern Recognition", "B", AI),
    _j("CVIU", "Computer Vision and Image Understanding", "B", AI),
    _j("Neurocomputing", "Neurocomputing", "C", AI),
    # ------------- Database / Data Mining / IR -------------
    _c("SIGMOD", "ACM SIGMOD Conference", "A", DB,
       ["international conference on management of data", "acm sigmod international conference on management of data"]),
    _c("KDD", "ACM SIGKDD Conference on Knowledge Discovery and Data Mining", "A", DB,
       ["knowledge discovery and data mining"], ["SIGKDD"]),
    _c("ICDE", "IEEE International Conference on Data Engineering", "A", DB,
       ["international conference on data engineering"]),
    _c("SIGIR", "International ACM SIGIR Conference on Research and Development in Information Retrieval", "A", DB,
       ["research and development in information retrieval"]),
    _c("VLDB", "International Conference on Very Large Data Bases", "A", DB,
       ["very large data bases", "proceedings of the vldb endowment"], ["PVLDB"]),
    _c("CIKM", "ACM International Conference on Information and Knowledge Management", "B", DB,
       ["conference on information and knowledge management"]),
    _c("WSDM", "ACM International Conference on Web Search and Data Mining", "B", DB,
       ["web search and data mining"]),
    _c("PODS", "ACM SIGMOD-SIGACT-SIGAI Symposium on Principles of Database Systems", "B", DB),
    _c("ICDM", "IEEE International Conference on Data Mining", "B", DB),
    _c("ECML-PKDD", "European Conference on Machine Learning and Principles and Practice of Knowledge Discovery in Databases",
       "B", DB, acronyms=["ECML", "PKDD"]),
    _c("RecSys", "ACM Conference on Recommender Systems", "B", DB),
    _c("EDBT", "International Conference on Extending Database Technology", "B", DB),
    _c("SDM", "SIAM International Conference on Data Mining", "B", DB),
    _c("DASFAA", "Database Systems for Advanced Applications", "B", DB),
    _c("PAKDD", "Pacific-Asia Conference on Knowledge Discovery and Data Mining", "C", DB),
    _j("TODS", "ACM Transactions on Database Systems", "A", DB),
    _j("TOIS", "ACM Transactions on Information Systems", "A", DB),
    _j("TKDE", "IEEE Transactions on Knowledge and Data Engineering", "A", DB),
    _j("VLDBJ", "The VLDB Journal", "A", DB),
    _j("TKDD", "ACM Transactions on Knowledge Discovery from Data", "B", DB),
    # ------------- Computer Networks -------------
    _c("SIGCOMM", "ACM International Conference on Applications, Technologies, Architectures, and Protocols for "
       "Computer Communication", "A", NET),
    _c("MobiCom", "ACM International Conference on Mobile Computing and Networking", "A", NET),
    _c("INFOCOM", "IEEE International Conference on Computer Communications", "A", NET),
    _c("NSDI", "Symposium on Network System Design and Implementation", "A", NET,
       ["usenix symposium on networked systems design and implementation"]),
    _c("SenSys", "ACM Conference on Embedded Networked Sensor Systems", "B", NET),
    _c("CoNEXT", "ACM International Conference on Emerging Networking Experiments and Technologies", "B", NET),
    _c("MobiSys", "ACM International Conference on Mobile Systems, Applications, and Services", "B", NET),
    _c("IMC", "ACM Internet Measurement Conference", "B", NET, ["internet measurement conference"]),
    _j("TON", "IEEE/ACM Transactions on Networking", "A", NET),
    _j("JSAC", "IEEE Journal on Selected Areas in Communications", "A", NET),
    _j("TMC", "IEEE Transactions on Mobile Computing", "A", NET),
    # ------------- Security -------------
    _c("CCS", "ACM Conference on Computer and Communications Security", "A", SEC,
       ["computer and communications security"]),
    _c("S&P", "IEEE Symposium on Security and Privacy", "A", SEC, ["symposium on security and privacy"],
       ["Oakland", "IEEE S&P"]),
    _c("USENIX Security", "USENIX Security Symposium", "A", SEC),
    _c("NDSS", "Network and Distributed System Security Symposium", "A", SEC),
    _c("CRYPTO", "International Cryptology Conference", "A", SEC),
    _c("EUROCRYPT", "International Conference on the Theory and Applications of Cryptographic Techniques", "A", SEC),
    _c("ACSAC", "Annual Computer Security Applications Conference", "B", SEC),
    _c("ASIACRYPT", "Annual International Conference on the Theory and Application of Cryptology and Information "
       "Security", "B", SEC),
    _c("ESORICS", "European Symposium on Research in Computer Security", "B", SEC),
    _c("RAID", "International Symposium on Research in Attacks, Intrusions and Defenses", "B", SEC),
    _c("DSN", "International Conference on Dependable Systems and Networks", "B", SEC),
    _j("TDSC", "IEEE Transactions on Dependable and Secure Computing", "A", SEC),
    _j("TIFS", "IEEE Transactions on Information Forensics and Security", "A", SEC),
    # ------------- Software Engineering / PL -------------
    _c("PLDI", "ACM SIGPLAN Conference on Programming Language Design and Implementation", "A", SE,
       ["programming language design and implementation"]),
    _c("POPL", "ACM SIGPLAN-SIGACT Symposium on Principles of Programming Languages", "A", SE,
       ["principles of programming languages"]),
    _c("FSE", "ACM Joint European Software Engineering Conference and Symposium on the Foundations of Software "
       "Engineering", "A", SE, ["foundations of software engineering"], ["ESEC/FSE"]),
    _c("SOSP", "ACM Symposium on Operating Systems Principles", "A", SE,
       ["symposium on operating systems principles"]),
    _c("OOPSLA", "Conference on Object-Oriented Programming Systems, Languages, and Applications", "A", SE),
    _c("ASE", "International Conference on Automated Software Engineering", "A", SE),
    _c("ICSE", "International Conference on Software Engineering", "A", SE),
    _c("ISSTA", "International Symposium on Software Testing and Analysis", "A", SE),
    _c("OSDI", "USENIX Symposium on Operating Systems Design and Implementation", "A", SE,
       ["operating systems design and implementation"]),
    _c("ECOOP", "European Conference on Object-Oriented Programming", "B", SE),
    _c("ICFP", "ACM SIGPLAN International Conference on Function Programming", "B", SE),
    _c("ICSME", "International Conference on Software Maintenance and Evolution", "B", SE),
    _c("SANER", "International Conference on Software Analysis, Evolution, and Reengineering", "B", SE),
    _c("ISSRE", "International Symposium on Software Reliability Engineering", "B", SE),
    _j("TOPLAS", "ACM Transactions on Programming Languages and Systems", "A", SE),
    _j("TOSEM", "ACM Transactions on Software Engineering and Methodology", "A", SE),
    _j("TSE", "IEEE Transactions on Software Engineering", "A", SE),
    _j("TSC", "IEEE Transactions on Services Computing", "A", SE),
    # ------------- Architecture / Parallel / Storage -------------
    _c("PPoPP", "ACM SIGPLAN Symposium on Principles & Practice of Parallel Programming", "A", ARCH),
    _c("FAST", "USENIX Conference on File and Storage Technologies", "A", ARCH),
    _c("DAC", "Design Automation Conference", "A", ARCH),
    _c("HPCA", "IEEE International Symposium on High Performance Computer Architecture", "A", ARCH),
    _c("MICRO", "IEEE/ACM International Symposium on Microarchitecture", "A", ARCH),
    _c("ASPLOS", "International Conference on Architectural Support for Programming Languages and Operating Systems",
       "A", ARCH),
    _c("ISCA", "International Symposium on Computer Architecture", "A", ARCH),
    _c("USENIX ATC", "USENIX Annual Technical Conference", "A", ARCH, acronyms=["ATC"]),
    _c("EuroSys", "European Conference on Computer Systems", "A", ARCH),
    _c("HPDC", "International Symposium on High-Performance Parallel and Distributed Computing", "B", ARCH),
    _c("ICS", "International Conference on Supercomputing", "B", ARCH),
    _j("TOCS", "ACM Transactions on Computer Systems", "A", ARCH),
    _j("TPDS", "IEEE Transactions on Parallel and Distributed Systems", "A", ARCH),
    _j("TC", "IEEE Transactions on Computers", "A", ARCH),
    # ------------- Graphics / Multimedia -------------
    _c("ACM MM", "ACM International Conference on Multimedia", "A", CG, acronyms=["ACMMM"]),
    _c("SIGGRAPH", "ACM SIGGRAPH Annual Conference", "A", CG),
    _c("IEEE VIS", "IEEE Visualization Conference", "A", CG),
    _c("ICME", "IEEE International Conference on Multimedia and Expo", "B", CG),
    _c("ICASSP", "IEEE International Conference on Acoustics, Speech and Signal Processing", "B", CG),
    _c("ICIP", "IEEE International Conference on Image Processing", "C", CG),
    _c("INTERSPEECH", "Conference of the International Speech Communication Association", "C", CG),
    _j("TOG", "ACM Transactions on Graphics", "A", CG),
    _j("TIP", "IEEE Transactions on Image Processing", "A", CG),
    _j("TVCG", "IEEE Transactions on Visualization and Computer Graphics", "A", CG),
    _j("TMM", "IEEE Transactions on Multimedia", "B", CG),
    # ------------- HCI -------------
    _c("CHI", "ACM Conference on Human Factors in Computing Systems", "A", HCI,
       ["human factors in computing systems", "chi conference on human factors in computing systems"]),
    _c("CSCW", "ACM Conference on Computer Supported Cooperative Work and Social Computing", "A", HCI),
    _c("UbiComp", "ACM International Joint Conference on Pervasive and Ubiquitous Computing", "A", HCI),
    _c("UIST", "ACM Symposium on User Interface Software and Technology", "A", HCI),
    _c("IUI", "ACM International Conference on Intelligent User Interfaces", "B", HCI),
    _j("TOCHI", "ACM Transactions on Computer-Human Interaction", "A", HCI),
    _j("IJHCS", "International Journal of Human-Computer Studies", "A", HCI),
    # ------------- Theory -------------
    _c("STOC", "ACM Symposium on Theory of Computing", "A", TCS),
    _c("FOCS", "IEEE Annual Symposium on Foundations of Computer Science", "A", TCS),
    _c("SODA", "ACM-SIAM Symposium on Discrete Algorithms", "A", TCS),
    _c("CAV", "International Conference on Computer Aided Verification", "A", TCS),
    _c("LICS", "ACM/IEEE Symposium on Logic in Computer Science", "A", TCS),
    _c("ICALP", "International Colloquium on Automata, Languages and Programming", "B", TCS),
    _j("JACM", "Journal of the ACM", "A", TCS),
    _j("TIT", "IEEE Transactions on Information Theory", "A", TCS),
    # ------------- Interdisciplinary -------------
    _c("WWW", "International World Wide Web Conference", "A", X,
       ["the web conference", "world wide web", "international conference on world wide web"]),
    _c("RTSS", "IEEE Real-Time Systems Symposium", "A", X),
    _c("WINE", "Conference on Web and Internet Economics", "A", X),
    _c("CogSci", "Annual Meeting of the Cognitive Science Society", "B", X),
    _c("EMSOFT", "International Conference on Embedded Software", "B", X),
    _j("JMIS", "Journal of Management Information Systems", "A", X),
    _j("PIEEE", "Proceedings of the IEEE", "A", X),
)


class CCFCatalog:
    """Lookup index over CatalogEntry records.

    Keys are normalized with normalize_venue_key(). When two entries share a
    key the first one registered wins.
    """

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._entries: list[CatalogEntry] = list(entries)
        self._by_abbr: dict[str, CatalogEntry] = {}
        self._by_name: dict[str, CatalogEntry] = {}
        self._by_alias: dict[str, CatalogEntry] = {}
        self._by_acronym: dict[str, CatalogEntry] = {}
        for entry in self._entries:
            self._index(self._by_abbr, entry.abbr, entry)
            self._index(self._by_name, entry.name, entry)
            for alias in entry.aliases:
                self._index(self._by_alias, alias, entry)
            for acronym in entry.acronyms:
                self._index(self._by_acronym, acronym, entry)

    @staticmethod
    def _index(table: dict[str, CatalogEntry], raw_key: str, entry: CatalogEntry) -> None:
        key = normalize_venue_key(raw_key)
        if not key:
            return
        existing = table.get(key)
        if existing is not None and existing is not entry:
            logger.debug("Catalog key %r already maps to %s, ignoring %s", key, existing.abbr, entry.abbr)
            return
        table[key] = entry

    @classmethod
    def default(cls) -> CCFCatalog:
        """Catalog built from the bundled DEFAULT_ENTRIES table."""
        return cls(DEFAULT_ENTRIES)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> CCFCatalog:
        """Build a catalog from plain mappings (e.g. a YAML list)."""
        return cls(CatalogEntry.from_dict(r) for r in records)

    # --- Lookups ---

    def get_by_abbr(self, abbr: str) -> CatalogEntry | None:
        return self._by_abbr.get(normalize_venue_key(abbr))

    def get_by_name(self, name: str) -> CatalogEntry | None:
        return self._by_name.get(normalize_venue_key(name))

    def get_by_alias(self, alias: str) -> CatalogEntry | None:
        return self._by_alias.get(normalize_venue_key(alias))

    def get_by_acronym(self, acronym: str) -> CatalogEntry | None:
        return self._by_acronym.get(normalize_venue_key(acronym))

    def get(self, key: str) -> CatalogEntry | None:
        """Look up an entry by abbreviation, name, alias or acronym (in that order)."""
        norm = normalize_venue_key(key)
        if not norm:
            return None
        for table in (self._by_abbr, self._by_name, self._by_alias, self._by_acronym):
            entry = table.get(norm)
            if entry is not None:
                return entry
        return None

    def has(self, name: str) -> bool:
        """True if the name is a known abbreviation, name, alias or acronym."""
        return self.get(name) is not None

    # --- Iteration ---

    @property
    def entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)
