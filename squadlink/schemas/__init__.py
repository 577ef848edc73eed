import importlib
import inspect
import pkgutil
import sys

from pydantic import BaseModel

# re-export every name listed in a submodule's __all__
for module_info in pkgutil.iter_modules(__path__):
    if module_info.name.startswith("_"):
        continue

    module = importlib.import_module(f"{__name__}.{module_info.name}")
    names = getattr(module, "__all__", ())
    globals().update({name: getattr(module, name) for name in names})


# UserPublic is referenced across modules; resolve forward references once
# everything is imported.
for name, obj in inspect.getmembers(sys.modules[__name__], inspect.isclass):
    if issubclass(obj, BaseModel) and obj.__module__.startswith(__name__):
        try:
            obj.model_rebuild()
        except Exception as e:
            raise RuntimeError(f"Failed to rebuild {name}: {e}")
