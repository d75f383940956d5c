"""Built-in catalog of the forestry viewer's WMS layers.

Raw records keyed by layer slug; validated into LayerConfig objects by
:func:`tileproxy.layers.registry.load_layer_registry`.
"""

GEOSERVER = "https://prostor.zgs.gov.si/geoserver/wms"


def _base(layer_name: str) -> dict[str, object]:
    return {
        "base_url": GEOSERVER,
        "layer_name": layer_name,
        "format": "image/jpeg",
        "transparent": False,
        "is_cacheable_overlay": False,
    }


def _overlay(layer_name: str, styles: str | None = None) -> dict[str, object]:
    return {
        "base_url": GEOSERVER,
        "layer_name": layer_name,
        "format": "image/png",
        "transparent": True,
        "styles": styles,
        "is_cacheable_overlay": True,
    }


DEFAULT_LAYERS: dict[str, dict[str, object]] = {
    # Base imagery
    "ortofoto": _base("pregledovalnik:DOF_2024"),
    "dof-ir": _base("pregledovalnik:DOF_IR"),
    "dmr": _base("pregledovalnik:DMR"),
    # Administrative
    "kataster": _overlay("pregledovalnik:kn_parcele", styles="parcele"),
    "kataster-nazivi": _overlay(
        "pregledovalnik:kn_parcele", styles="parcele_nazivi"
    ),
    "katastrske-obcine": _overlay("pregledovalnik:KN_KATASTRSKE_OBCINE"),
    "obcine": _overlay("pregledovalnik:NEP_RPE_OBCINE"),
    "upravne-enote": _overlay("pregledovalnik:NEP_RPE_UPRAVNE_ENOTE"),
    "statisticne-regije": _overlay("pregledovalnik:NEP_RPE_STATISTICNE_REGIJE"),
    "naselja": _overlay("pregledovalnik:NEP_RPE_NASELJA"),
    "hisne-stevilke": _overlay("pregledovalnik:NEP_HISNE_STEVILKE"),
    "drzavna-meja": _overlay("pregledovalnik:drzavna_meja"),
    # Infrastructure
    "gozdne-ceste": _overlay("pregledovalnik:gozdne_ceste", styles="gozdne_ceste"),
    "glavne-ceste": _overlay("pregledovalnik:KGI_LINIJE_CESTE_G"),
    "zeleznice": _overlay("pregledovalnik:LINIJE_ZELEZNICE_G"),
    "planinske-poti": _overlay("pregledovalnik:KGI_LINIJE_PLANINSKE_POTI_G"),
    # Forest management
    "sestoji": _overlay("pregledovalnik:sestoji"),
    "odseki": _overlay("pregledovalnik:odseki_gozdni"),
    "revirji": _overlay("pregledovalnik:revirji"),
    "gozdna-maska": _overlay("pregledovalnik:gozdna_maska"),
    "gge": _overlay("pregledovalnik:gge"),
    "ggo": _overlay("pregledovalnik:ggo"),
    # Protected areas
    "gozdni-rezervati": _overlay("pregledovalnik:gozdni_rezervati"),
    "varovalni-gozdovi": _overlay("pregledovalnik:varovalni_gozdovi"),
    "natura-2000": _overlay("pregledovalnik:natura2000"),
    "zavarovana-obmocja": _overlay("pregledovalnik:zavarovana_obmocja_poligoni"),
    "naravne-vrednote": _overlay("pregledovalnik:naravne_vrednote_poligoni"),
    "ekolosko-obmocja": _overlay("pregledovalnik:epo_poligoni"),
    "koridorji": _overlay("pregledovalnik:koridorji"),
    "ekocelice": _overlay("pregledovalnik:gozdni_sklad_ekocelice"),
    "habitatna-drevesa": _overlay("pregledovalnik:gozdni_sklad_habitatna_drevesa"),
    # Hazards and damage
    "pozarna-ogrozenost": _overlay("pregledovalnik:pozarna_ogrozenost"),
    "gozdni-pozari": _overlay("pregledovalnik:gozdni_pozari"),
    "protipozarne-preseke": _overlay("pregledovalnik:protipozarne_preseke"),
    "vetrolom-2017": _overlay("pregledovalnik:vetrolom_2017"),
    "vetrolom-2018": _overlay("pregledovalnik:vetrolom_2018"),
    "zled-2014": _overlay("pregledovalnik:zled_2014"),
    "podlubniki": _overlay("pregledovalnik:podlubniki_2015_2019"),
    "krcitve": _overlay("pregledovalnik:krcitve"),
    # Forest functions
    "lesna-proizvodnja": _overlay("pregledovalnik:on21_fun_lesnoproizvodna_p"),
    "varovalna-funkcija": _overlay("pregledovalnik:on21_fun_varovalna_p"),
    "rekreacija": _overlay("pregledovalnik:on21_fun_rekreacijska_p"),
    # Special
    "lovisca": _overlay("pregledovalnik:lovisca"),
}
