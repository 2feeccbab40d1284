"couchdesign: design document and query index descriptors for CouchDB/Cloudant."

__version__ = "0.1.0"
