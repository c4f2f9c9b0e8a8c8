# services
from shipping_partner.delhivery.delhivery import Delhivery
from shipping_partner.xpressbees.xpressbees import Xpressbees
from shipping_partner.ekart.ekart import Ekart
from shipping_partner.bluedart.bluedart import Bluedart
from shipping_partner.ecom.ecom import Ecom

# courier slug -> adapter class, slugs come from the adapters themselves
courier_service_mapping = {
    partner.name: partner for partner in (Delhivery, Xpressbees, Ekart, Bluedart, Ecom)
}
