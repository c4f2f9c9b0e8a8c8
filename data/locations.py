# Pincode geography used by the zone resolver.
#
# The first digit of an Indian pincode is the postal region, the first two the
# sorting district circle and the first three the sorting district. Circles map
# onto states closely enough for courier zoning.

# three-digit sorting districts of the eight metro cities
metro_cities = {
    "110": "Delhi",
    "400": "Mumbai",
    "560": "Bengaluru",
    "600": "Chennai",
    "700": "Kolkata",
    "500": "Hyderabad",
    "411": "Pune",
    "380": "Ahmedabad",
}

# two-digit postal circle -> state, circles sharing a state collapse to one code
postal_circles = {
    "11": "DL",
    "12": "HR",
    "13": "HR",
    "14": "PB",
    "15": "PB",
    "16": "PB",
    "17": "HP",
    "18": "JK",
    "19": "JK",
    "20": "UP",
    "21": "UP",
    "22": "UP",
    "23": "UP",
    "24": "UP",
    "25": "UP",
    "26": "UP",
    "27": "UP",
    "28": "UP",
    "30": "RJ",
    "31": "RJ",
    "32": "RJ",
    "33": "RJ",
    "34": "RJ",
    "36": "GJ",
    "37": "GJ",
    "38": "GJ",
    "39": "GJ",
    "40": "MH",
    "41": "MH",
    "42": "MH",
    "43": "MH",
    "44": "MH",
    "45": "MP",
    "46": "MP",
    "47": "MP",
    "48": "MP",
    "49": "CG",
    "50": "TS",
    "51": "AP",
    "52": "AP",
    "53": "AP",
    "56": "KA",
    "57": "KA",
    "58": "KA",
    "59": "KA",
    "60": "TN",
    "61": "TN",
    "62": "TN",
    "63": "TN",
    "64": "TN",
    "67": "KL",
    "68": "KL",
    "69": "KL",
    "70": "WB",
    "71": "WB",
    "72": "WB",
    "73": "WB",
    "74": "WB",
    "75": "OR",
    "76": "OR",
    "77": "OR",
    "78": "AS",
    "79": "NE",
    "80": "BR",
    "81": "BR",
    "82": "JH",
    "83": "JH",
    "84": "BR",
    "85": "BR",
}

# inclusive three-digit sorting district ranges of the North East and J&K
special_zone = [
    (180, 194),  # Jammu & Kashmir, Ladakh
    (737, 737),  # Sikkim
    (781, 788),  # Assam
    (790, 799),  # Arunachal, Nagaland, Manipur, Mizoram, Tripura, Meghalaya
]
