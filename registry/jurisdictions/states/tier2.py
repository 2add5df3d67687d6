"""
Static-HTML registries that share the factory selector bundle.
"""

from __future__ import annotations

from registry.jurisdictions.factory import tier2_config
from registry.jurisdictions.models import JurisdictionConfig

_TIER2_REGISTRIES: tuple[tuple[str, str, str, str, str], ...] = (
    ("al", "Alabama", "Secretary of State",
     "https://arc-sos.state.al.us/cgi/corpname.mbr/input", "https://arc-sos.state.al.us"),
    ("ak", "Alaska", "Division of Corporations",
     "https://www.commerce.alaska.gov/cbp/Main/Search/Entities", "https://www.commerce.alaska.gov"),
    ("ar", "Arkansas", "Secretary of State",
     "https://www.sos.arkansas.gov/corps/search_all.php", "https://www.sos.arkansas.gov"),
    ("ct", "Connecticut", "Secretary of the State",
     "https://service.ct.gov/business/s/onlinebusinesssearch", "https://service.ct.gov"),
    ("hi", "Hawaii", "Department of Commerce",
     "https://hbe.ehawaii.gov/documents/search.html", "https://hbe.ehawaii.gov"),
    ("id", "Idaho", "Secretary of State",
     "https://sosbiz.idaho.gov/search/business", "https://sosbiz.idaho.gov"),
    ("ks", "Kansas", "Secretary of State",
     "https://www.kansas.gov/bess/flow/main?execution=e1s1", "https://www.kansas.gov"),
    ("ky", "Kentucky", "Secretary of State",
     "https://web.sos.ky.gov/ftsearch/", "https://web.sos.ky.gov"),
    ("la", "Louisiana", "Secretary of State",
     "https://coraweb.sos.la.gov/commercialsearch/CommercialSearch.aspx", "https://coraweb.sos.la.gov"),
    ("me", "Maine", "Secretary of State",
     "https://icrs.informe.org/nei-sos-icrs/ICRS", "https://icrs.informe.org"),
    ("md", "Maryland", "Department of Assessments",
     "https://egov.maryland.gov/BusinessExpress/EntitySearch", "https://egov.maryland.gov"),
    ("mn", "Minnesota", "Secretary of State",
     "https://mblsportal.sos.state.mn.us/Business/Search", "https://mblsportal.sos.state.mn.us"),
    ("ms", "Mississippi", "Secretary of State",
     "https://corp.sos.ms.gov/corp/portal/c/page/corpBusinessIdSearch/portal.aspx",
     "https://corp.sos.ms.gov"),
    ("mo", "Missouri", "Secretary of State",
     "https://bsd.sos.mo.gov/BusinessEntity/BESearch.aspx", "https://bsd.sos.mo.gov"),
    ("mt", "Montana", "Secretary of State",
     "https://biz.sosmt.gov/search", "https://biz.sosmt.gov"),
    ("ne", "Nebraska", "Secretary of State",
     "https://www.nebraska.gov/sos/corp/corpsearch.cgi", "https://www.nebraska.gov"),
    ("nv", "Nevada", "Secretary of State",
     "https://esos.nv.gov/EntitySearch/OnlineEntitySearch", "https://esos.nv.gov"),
    ("nh", "New Hampshire", "Secretary of State",
     "https://quickstart.sos.nh.gov/online/BusinessInquire", "https://quickstart.sos.nh.gov"),
    ("nm", "New Mexico", "Secretary of State",
     "https://portal.sos.state.nm.us/BFS/online/CorporationBusinessSearch",
     "https://portal.sos.state.nm.us"),
    ("nd", "North Dakota", "Secretary of State",
     "https://firststop.sos.nd.gov/search/business", "https://firststop.sos.nd.gov"),
    ("ok", "Oklahoma", "Secretary of State",
     "https://www.sos.ok.gov/corp/corpInquiryFind.aspx", "https://www.sos.ok.gov"),
    ("or", "Oregon", "Secretary of State",
     "https://egov.sos.state.or.us/br/pkg_web_name_srch_inq.login", "https://egov.sos.state.or.us"),
    ("ri", "Rhode Island", "Secretary of State",
     "https://business.sos.ri.gov/CorpWeb/CorpSearch/CorpSearch.aspx", "https://business.sos.ri.gov"),
    ("sc", "South Carolina", "Secretary of State",
     "https://businessfilings.sc.gov/BusinessFiling/Entity/Search", "https://businessfilings.sc.gov"),
    ("sd", "South Dakota", "Secretary of State",
     "https://sosenterprise.sd.gov/BusinessServices/Business/FilingSearch.aspx",
     "https://sosenterprise.sd.gov"),
    ("tn", "Tennessee", "Secretary of State",
     "https://tnbear.tn.gov/Ecommerce/FilingSearch.aspx", "https://tnbear.tn.gov"),
    ("ut", "Utah", "Division of Corporations",
     "https://secure.utah.gov/bes/", "https://secure.utah.gov"),
    ("vt", "Vermont", "Secretary of State",
     "https://bizfilings.vermont.gov/online/BusinessInquire", "https://bizfilings.vermont.gov"),
    ("wv", "West Virginia", "Secretary of State",
     "https://apps.wv.gov/SOS/BusinessEntitySearch/", "https://apps.wv.gov"),
    ("wy", "Wyoming", "Secretary of State",
     "https://wyobiz.wyo.gov/Business/FilingSearch.aspx", "https://wyobiz.wyo.gov"),
)

TIER2_CONFIGS: tuple[JurisdictionConfig, ...] = tuple(
    tier2_config(code, name, registry_name, search_url, base_url)
    for code, name, registry_name, search_url, base_url in _TIER2_REGISTRIES
)
