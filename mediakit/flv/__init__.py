"""FLV tag parsing and AMF0 script data reading."""