from rdflib import Namespace
from rdflib.namespace import RDF, RDFS, XSD

# GeoSPARQL
GSP = Namespace("http://www.opengis.net/ont/geosparql#")
