"""Identifiants (IRI) des classes et propriétés du modèle de données.

Les termes sont des `skos:Concept`, les libellés viennent de SKOS et Dublin Core. Le reste du modèle
(vocabulaires, ressources, journal des modifications, commentaires, utilisateurs) vit dans l'espace
de noms du projet.
"""

from rdflib import Namespace
from rdflib.namespace import DCTERMS, RDF, SKOS

LX = Namespace("https://w3id.org/lexicon/ontology#")

# Classes
TERM = SKOS.Concept
VOCABULARY = LX.Vocabulary
RESOURCE = LX.Resource
DOCUMENT = LX.Document
FILE = LX.File
SNAPSHOT = LX.Snapshot
CHANGE = LX.Change
PERSIST_CHANGE = LX.PersistChange
UPDATE_CHANGE = LX.UpdateChange
COMMENT = LX.Comment
USER = LX.User

# Libellés
PREF_LABEL = SKOS.prefLabel
TITLE = DCTERMS.title
DEFINITION = SKOS.definition
DESCRIPTION = DCTERMS.description
LABEL_PROPERTIES = (PREF_LABEL, TITLE)

# Journal des modifications
HAS_CHANGED_ENTITY = LX.changedEntity
HAS_EDITOR = LX.editor
HAS_MODIFICATION_DATE = LX.modifiedAt

# Commentaires
HAS_TOPIC = LX.topic
HAS_CREATOR = LX.creator
HAS_CONTENT = LX.content
HAS_CREATED = LX.created
HAS_LAST_MODIFIED = LX.lastModified

# Rattachement aux vocabulaires
IN_VOCABULARY = LX.inVocabulary
HAS_DOCUMENT_VOCABULARY = LX.documentVocabulary
IN_DOCUMENT = LX.inDocument
HAS_TERM_STATE = LX.termState

# Utilisateurs
HAS_FIRST_NAME = LX.firstName
HAS_LAST_NAME = LX.lastName
HAS_USERNAME = LX.username

TYPE = RDF.type
