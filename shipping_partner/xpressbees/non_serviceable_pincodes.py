# pincodes xpressbees refuses for both pickup and delivery
non_serviceable_pincodes = frozenset(
    [
        "133206", "143601", "144201", "144301", "144302", "144303", "146114", "146115",
        "171018", "175009", "175010", "175011", "175046", "180003", "180004", "180009",
        "180012", "180020", "181101", "181102", "181103", "181104", "181105", "181111",
        "181112", "181113", "181114", "181131", "181132", "182121", "185101", "185102",
        "185131", "185132", "185151", "185152", "185153", "185155", "185156", "185234",
        "190005", "190007", "190008", "190009", "190014", "190018", "190021", "191102",
        "191132", "192121", "193404", "193411", "201206", "202001", "202002", "202117",
        "202122", "202150", "202171", "221404", "221406", "249306", "281001", "281002",
        "281004", "281005", "281006", "301607", "301712", "312606", "321210", "335512",
        "335528", "363421", "363424", "382241", "382276", "383310", "383330", "385535",
        "387310", "388110", "388120", "392060", "392061", "392170", "392230", "400004",
        "400006", "400007", "400008", "400010", "400011", "400012", "400013", "400017",
        "400018", "400019", "400026", "400027", "400033", "400035", "400043", "400057",
        "400064", "400066", "400067", "400071", "400072", "400074", "400086", "400088",
        "400089", "400094", "400095", "400612", "400615", "401107", "410101", "410208",
        "410216", "410221", "410506", "410507", "411057", "412101", "412106", "412109",
        "412113", "412201", "412202", "412211", "412212", "412213", "412236", "412238",
        "412239", "412240", "412241", "412308", "413021", "413022", "413401", "413409",
        "413411", "413737", "414602", "415022", "415302", "415540", "416408", "416510",
        "421102", "422010", "422210", "422212", "422213", "422219", "423104", "423120",
        "423402", "424006", "425109", "425115", "425449", "431007", "431114", "431117",
        "431121", "431200", "431207", "431216", "431218", "431222", "431223", "431224",
        "431225", "431534", "431603", "441107", "441109", "441112", "441113", "441117",
        "441403", "441502", "441503", "441504", "441701", "441703", "441902", "441906",
        "442502", "442505", "443107", "443108", "443202", "443203", "443308", "443404",
        "443407", "444105", "444301", "444304", "444307", "444704", "444720", "444810",
        "445210", "451221", "451224", "451228", "453551", "454010", "454221", "454552",
        "455115", "455116", "455118", "456313", "457769", "457772", "458389", "458558",
        "458667", "458669", "458895", "458990", "464114", "465230", "465441", "465444",
        "465677", "472442", "473287", "473865", "475220", "484334", "484336", "484444",
        "484770", "484771", "484774", "484776", "485666", "491340", "491444", "491881",
        "491885", "492885", "493221", "493554", "493555", "493559", "493662", "494553",
        "494556", "495444", "495445", "495695", "496445", "496450", "497235", "497449",
        "497450", "500003", "504293", "504295", "505473", "505528", "505530", "509203",
        "509209", "509215", "577526", "591304", "600001", "600045", "600047", "600060",
        "600063", "600064", "602024", "603048", "603102", "603104", "603127", "609202",
        "609204", "609802", "609803", "609807", "609810", "609811", "612106", "626116",
        "626126", "626132", "626133", "626138", "626149", "626190", "632511", "632516",
        "632531", "635103", "635114", "635119", "670353", "670644", "670646", "671310",
        "671312", "700105", "711101", "711107", "711203", "711204", "711227", "713321",
        "713323", "713338", "713347", "713358", "723213", "741233", "743291", "752106",
        "752107", "752110", "752111", "752116", "756112", "756120", "756122", "759127",
        "786158", "803116", "803117", "803121", "805107", "805124", "805130", "805141",
        "824203", "824231", "828205", "843325", "843327", "843329", "843334", "845301",
        "845403", "848201", "848202", "848203", "848204", "854202", "854203", "854205",
        "854327",
    ]
)
