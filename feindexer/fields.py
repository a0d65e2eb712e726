"""
feindexer.fields
----------------
Field names of the target search cores.  Each core has a fixed vocabulary;
the names below must match the cores' schema files.
"""

# --------------------------------------------------------------------- #
#  Shared                                                               #
# --------------------------------------------------------------------- #
UNIQUE_KEY = "uniqueKey"
BY_DEFAULT = "byDefault"
MRK_KEY = "markerKey"
MRK_ID = "markerId"
ALL_KEY = "alleleKey"
REF_KEY = "refKey"
REF_ID = "refId"
JNUM_ID = "jnumId"
STRAIN_ID = "strainId"
SYMBOL = "symbol"
ORGANISM = "organism"

CHROMOSOME = "chromosome"
GENOMIC_CHROMOSOME = "genomicChromosome"
GENETIC_CHROMOSOME = "geneticChromosome"
START_COORD = "startCoordinate"
END_COORD = "endCoordinate"
CM_OFFSET = "cmOffset"
CYTOGENETIC_OFFSET = "cytogeneticOffset"

# --------------------------------------------------------------------- #
#  reference                                                            #
# --------------------------------------------------------------------- #
REF_AUTHOR = "author"
REF_AUTHOR_FORMATTED = "authorFormatted"
REF_AUTHOR_FACET = "authorFacet"
REF_FIRST_AUTHOR = "firstAuthor"
REF_LAST_AUTHOR = "lastAuthor"
REF_JOURNAL = "journal"
REF_JOURNAL_FACET = "journalFacet"
REF_GROUPING = "grouping"
REF_TITLE = "title"
REF_TITLE_STEMMED = "titleStemmed"
REF_TITLE_UNSTEMMED = "titleUnstemmed"
REF_ABSTRACT = "abstract"
REF_ABSTRACT_STEMMED = "abstractStemmed"
REF_ABSTRACT_UNSTEMMED = "abstractUnstemmed"
REF_TITLE_ABSTRACT_STEMMED = "titleAbstractStemmed"
REF_TITLE_ABSTRACT_UNSTEMMED = "titleAbstractUnstemmed"
REF_YEAR = "year"
REF_ISSUE = "issue"
REF_VOLUME = "volume"
REF_HAS_DATA = "hasData"
REF_DISEASE_RELEVANT_MARKER_ID = "diseaseRelevantMarkerId"
REF_DISEASE_ID = "diseaseId"
REF_GO_MARKER_ID = "goMarkerId"
REF_PHENO_MARKER_ID = "phenoMarkerId"

MRK_COUNT = "markerCount"
DO_MODEL_COUNT = "diseaseModelCount"
PRB_COUNT = "probeCount"
MAP_EXPT_COUNT = "mappingExptCount"
GXD_INDEX_COUNT = "gxdIndexCount"
GXD_RESULT_COUNT = "gxdResultCount"
GXD_STRUCT_COUNT = "gxdStructureCount"
GXD_ASSAY_COUNT = "gxdAssayCount"
ALL_COUNT = "alleleCount"
SEQ_COUNT = "sequenceCount"
GO_ANNOT_COUNT = "goAnnotCount"
ORTHO_COUNT = "orthologCount"

# --------------------------------------------------------------------- #
#  allele                                                               #
# --------------------------------------------------------------------- #
ALL_ID = "alleleId"
ALL_SYMBOL = "alleleSymbol"
ALL_NAME = "alleleName"
ALL_TYPE = "alleleType"
ALL_SUBTYPE = "alleleSubType"
ALL_IS_WILD_TYPE = "isWildType"
ALL_COLLECTION = "alleleCollection"
ALL_IS_CELLLINE = "isCellLine"
ALL_MI_MARKER_IDS = "allMiMarkerIds"
ALL_MUTATION = "mutation"
ALL_NOMEN = "nomen"
ALL_PHENO_ID = "phenoId"
ALL_PHENO_TEXT = "phenoText"
ALL_HAS_DO = "hasDO"
ALL_TRANSMISSION_SORT = "byTransmission"
ALL_SYMBOL_SORT = "bySymbol"
ALL_TYPE_SORT = "byAlleleType"
ALL_CHR_SORT = "byChromosome"
ALL_DISEASE_SORT = "byDisease"

# --------------------------------------------------------------------- #
#  sequence / probe                                                     #
# --------------------------------------------------------------------- #
SEQ_KEY = "sequenceKey"
SEQ_PROVIDER = "provider"
SEQ_TYPE = "sequenceType"
SEQ_STRAIN = "strain"
SEQ_SEQUENCE = "sequence"

PRB_KEY = "probeKey"
PRB_BY_NAME = "byName"
PRB_BY_TYPE = "byType"
PRB_SEGMENT_TYPE = "segmentType"
PRB_MARKER_ID = "markerId"
PRB_REFERENCE_ID = "referenceId"
PRB_PROBE = "probe"

# --------------------------------------------------------------------- #
#  vocabBrowser                                                         #
# --------------------------------------------------------------------- #
VB_PRIMARY_ID = "vbPrimaryId"
VB_TERM = "vbTerm"
VB_SEQUENCE_NUM = "vbSequenceNum"
VB_BROWSER_TERM = "vbBrowserTerm"
VB_VOCAB_NAME = "vbVocabName"
VB_DAG_NAME = "vbDagName"
VB_ACC_ID = "vbAccId"
VB_SYNONYM = "vbSynonym"
VB_PARENT_ID = "vbParentId"
VB_CROSSREF = "vbCrossRef"

# --------------------------------------------------------------------- #
#  recombinaseMatrix                                                    #
# --------------------------------------------------------------------- #
CELL_TYPE = "cellType"
PARENT_ANATOMY_ID = "parentAnatomyId"
ANCESTOR_ANATOMY_KEY = "ancestorAnatomyKey"
ANATOMY_TERM = "anatomyTerm"
ANATOMY_ID = "anatomyId"
COLUMN_ID = "columnId"
ALL_RESULTS = "allResults"
DETECTED_RESULTS = "detectedResults"
NOT_DETECTED_RESULTS = "notDetectedResults"
ANY_AMBIGUOUS = "anyAmbiguous"
CHILDREN = "children"
AMBIGUOUS_OR_NOT_DETECTED_DESCENDANTS = "ambiguousOrNotDetectedDescendants"
BY_COLUMN = "byColumn"

# --------------------------------------------------------------------- #
#  qsOtherBucket                                                        #
# --------------------------------------------------------------------- #
QS_PRIMARY_ID = "primaryID"
QS_NAME = "name"
QS_OBJECT_TYPE = "objectType"
QS_OBJECT_SUBTYPE = "objectSubtype"
QS_DETAIL_URI = "detailUri"
QS_MARKER_TYPE_FACETS = "markerTypeFacets"
QS_SEARCH_TERM_EXACT = "searchTermExact"
QS_SEARCH_TERM_DISPLAY = "searchTermDisplay"
QS_SEARCH_TERM_TYPE = "searchTermType"
QS_SEARCH_TERM_WEIGHT = "searchTermWeight"
QS_SEQUENCE_NUM = "sequenceNum"
