import importlib

MODULES = [
    'weblearn.config',
    'weblearn.container',
    'weblearn.domain',
    'weblearn.services.acquisition_service',
    'weblearn.services.document_extractor',
    'weblearn.api.app',
]

def test_imports():
    for m in MODULES:
        importlib.import_module(m)
