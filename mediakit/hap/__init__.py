"""HomeKit Accessory Protocol models, HTTP response writers and secure channel."""