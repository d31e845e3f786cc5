"""Static airline and city tables used when provider reference data is unavailable."""

AIRLINE_NAMES: dict[str, str] = {
    # Africa
    "L6": "Mauritania Airlines", "AT": "Royal Air Maroc", "HF": "Air Côte d'Ivoire",
    "ET": "Ethiopian Airlines", "MS": "EgyptAir", "SN": "Brussels Airlines",
    "TU": "Tunisair", "AH": "Air Algérie", "KQ": "Kenya Airways",
    "SA": "South African Airways", "2J": "Air Burkina", "TC": "Air Tanzania",
    # Europe
    "AF": "Air France", "KL": "KLM", "BA": "British Airways",
    "LH": "Lufthansa", "LX": "Swiss", "OS": "Austrian",
    "IB": "Iberia", "TP": "TAP Air Portugal", "VY": "Vueling",
    "UX": "Air Europa", "AZ": "ITA Airways", "SK": "SAS",
    "AY": "Finnair", "FR": "Ryanair", "U2": "easyJet",
    "TO": "Transavia France", "VS": "Virgin Atlantic",
    # Middle East / Turkey
    "TK": "Turkish Airlines", "PC": "Pegasus Airlines", "EK": "Emirates",
    "QR": "Qatar Airways", "EY": "Etihad Airways", "SV": "Saudia",
    # Americas
    "AA": "American Airlines", "DL": "Delta Air Lines", "UA": "United Airlines",
    "AC": "Air Canada", "B6": "JetBlue Airways",
    # Asia-Pacific
    "SQ": "Singapore Airlines", "CX": "Cathay Pacific", "NH": "ANA",
    "JL": "Japan Airlines",
}

CITY_NAMES: dict[str, str] = {
    # Mauritania and West Africa
    "NKC": "Nouakchott", "NDB": "Nouadhibou", "ATR": "Atar",
    "DSS": "Dakar", "DKR": "Dakar", "BKO": "Bamako", "ABJ": "Abidjan",
    "CMN": "Casablanca", "RAK": "Marrakech", "ALG": "Algiers", "TUN": "Tunis",
    "LOS": "Lagos", "ACC": "Accra", "CKY": "Conakry", "OUA": "Ouagadougou",
    "NIM": "Niamey", "LPA": "Las Palmas",
    # Europe
    "CDG": "Paris", "ORY": "Paris", "PAR": "Paris",
    "MAD": "Madrid", "BCN": "Barcelona", "LIS": "Lisbon",
    "BRU": "Brussels", "AMS": "Amsterdam", "FRA": "Frankfurt",
    "LHR": "London", "LGW": "London", "LON": "London",
    "FCO": "Rome", "MXP": "Milan", "GVA": "Geneva", "ZRH": "Zurich",
    "MRS": "Marseille", "LYS": "Lyon",
    # Middle East / Turkey
    "IST": "Istanbul", "SAW": "Istanbul", "DXB": "Dubai", "DOH": "Doha",
    "AUH": "Abu Dhabi", "JED": "Jeddah", "RUH": "Riyadh", "CAI": "Cairo",
    # Rest of the world
    "ADD": "Addis Ababa", "NBO": "Nairobi", "JNB": "Johannesburg",
    "JFK": "New York", "EWR": "New York", "NYC": "New York",
    "IAD": "Washington", "YUL": "Montreal", "YYZ": "Toronto",
    "PEK": "Beijing", "PVG": "Shanghai", "SIN": "Singapore",
}
