from defaultlinks.models.models import Namespace, Page, PageProp, PageVersion

__all__ = ["Namespace", "Page", "PageProp", "PageVersion"]
